"""
DeploymentRecord store: ``(network, contract_name) -> address``

Persisted as ``{network: {contract_name: address}}``. Records are write-once;
replacing one requires an explicit overwrite.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from router_fleet.exceptions import DeploymentRecordConflict, InvalidConfig

logger = logging.getLogger(__name__)


class DeploymentStore:
    """Deployment records backed by a JSON file, or memory when no path is given"""

    def __init__(self, path: Optional[str | Path] = None) -> None:
        self._path = Path(path) if path is not None else None
        self._records: dict[str, dict[str, str]] = self._read()
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._file_lock = asyncio.Lock()

    @classmethod
    def in_memory(cls, records: Optional[dict[str, dict[str, str]]] = None) -> "DeploymentStore":
        store = cls()
        for network, contracts in (records or {}).items():
            store._records[network] = dict(contracts)
        return store

    def _read(self) -> dict[str, dict[str, str]]:
        if self._path is None or not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            raise InvalidConfig(f"deployment records {self._path} are not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise InvalidConfig(f"deployment records {self._path} must be a JSON object")
        return {network: dict(contracts) for network, contracts in data.items()}

    def lock(self, network: str, contract_name: str) -> asyncio.Lock:
        """Record-level lock for read-modify-write of one key"""
        key = (network, contract_name)
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    def get(self, network: str, contract_name: str) -> Optional[str]:
        """Recorded address, or None when not yet deployed"""
        return self._records.get(network, {}).get(contract_name)

    def all(self) -> dict[str, dict[str, str]]:
        return {network: dict(contracts) for network, contracts in self._records.items()}

    async def put(
        self,
        network: str,
        contract_name: str,
        address: str,
        overwrite: bool = False,
    ) -> None:
        """
        Record a deployment.

        Writing the address already on record is a no-op.

        Raises:
            DeploymentRecordConflict: If a different address is on record and
                ``overwrite`` is false
        """
        existing = self.get(network, contract_name)
        if existing is not None and existing.lower() == address.lower():
            return
        if existing is not None and not overwrite:
            raise DeploymentRecordConflict(network, contract_name, existing, address)

        self._records.setdefault(network, {})[contract_name] = address
        if existing is not None:
            logger.warning(
                "%s %s record replaced: %s -> %s", network, contract_name, existing, address
            )
        else:
            logger.info("%s %s recorded at %s", network, contract_name, address)
        await self._persist()

    async def _persist(self) -> None:
        if self._path is None:
            return
        async with self._file_lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            payload = json.dumps(self._records, indent=2, sort_keys=True) + "\n"
            fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=".deploy-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp, self._path)
            except OSError:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
