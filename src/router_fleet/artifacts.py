"""
Compiled contract artifacts (Hardhat artifact JSON)
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from eth_abi import encode
from eth_abi.exceptions import EncodingError

from router_fleet.exceptions import ArtifactNotFound, InvalidConfig
from router_fleet.utils.create2 import to_bytes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContractArtifact:
    """Contract ABI with creation and runtime bytecode"""

    name: str
    abi: list[dict[str, Any]]
    bytecode: bytes
    deployed_bytecode: bytes | None = None

    @classmethod
    def from_json(cls, name: str, data: dict[str, Any]) -> "ContractArtifact":
        bytecode = data.get("bytecode") or ""
        if not bytecode or bytecode == "0x":
            raise InvalidConfig(f"Artifact {name} has no creation bytecode")
        deployed = data.get("deployedBytecode")
        return cls(
            name=data.get("contractName", name),
            abi=data.get("abi", []),
            bytecode=to_bytes(bytecode),
            deployed_bytecode=to_bytes(deployed) if deployed and deployed != "0x" else None,
        )

    def constructor_types(self) -> list[str]:
        """Constructor parameter types in declaration order"""
        for item in self.abi:
            if item.get("type") == "constructor":
                return [_abi_type(i) for i in item.get("inputs", [])]
        return []

    def encode_constructor_args(self, args: list[Any]) -> bytes:
        """ABI-encode constructor arguments

        Raises:
            InvalidConfig: If the arguments do not match the constructor
        """
        types = self.constructor_types()
        if len(types) != len(args):
            raise InvalidConfig(
                f"{self.name} constructor takes {len(types)} argument(s), got {len(args)}"
            )
        if not types:
            return b""
        try:
            return encode(types, list(args))
        except (EncodingError, TypeError, ValueError) as e:
            raise InvalidConfig(f"Bad constructor arguments for {self.name}: {e}") from e


def _abi_type(param: dict[str, Any]) -> str:
    """Render an ABI parameter type, expanding tuples"""
    typ = param["type"]
    if typ.startswith("tuple"):
        inner = ",".join(_abi_type(c) for c in param.get("components", []))
        return f"({inner}){typ[len('tuple'):]}"
    return typ


class ArtifactStore:
    """Looks up Hardhat artifacts (``<dir>/**/<Name>.json``) by contract name"""

    def __init__(self, artifacts_dir: str | Path) -> None:
        self._root = Path(artifacts_dir)
        self._cache: dict[str, ContractArtifact] = {}

    @property
    def root(self) -> Path:
        return self._root

    def load(self, contract_name: str) -> ContractArtifact:
        """Load an artifact by contract name

        Raises:
            ArtifactNotFound: If no artifact matches
        """
        if contract_name in self._cache:
            return self._cache[contract_name]

        candidates = [
            p
            for p in sorted(self._root.rglob(f"{contract_name}.json"))
            if not p.name.endswith(".dbg.json")
        ]
        if not candidates:
            raise ArtifactNotFound(f"No artifact for {contract_name} under {self._root}")
        if len(candidates) > 1:
            logger.warning(
                "Multiple artifacts for %s, using %s", contract_name, candidates[0]
            )

        data = json.loads(candidates[0].read_text(encoding="utf-8"))
        artifact = ContractArtifact.from_json(contract_name, data)
        self._cache[contract_name] = artifact
        return artifact
