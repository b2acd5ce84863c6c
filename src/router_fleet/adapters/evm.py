"""
EVM chain adapter: web3.py reads, salted deploys through the shared factory
"""

import logging
from typing import Any

from web3.exceptions import (
    BadFunctionCallOutput,
    ContractLogicError,
    Web3RPCError,
)

from router_fleet.abi import DEPLOY_FACTORY_ABI
from router_fleet.adapters.base import ChainAdapter
from router_fleet.artifacts import ArtifactStore, ContractArtifact
from router_fleet.config import ChainFamily
from router_fleet.exceptions import ChainError, InvalidConfig, RpcUnavailable
from router_fleet.signers.base import TransactionSigner
from router_fleet.utils.create2 import build_init_code, compute_create2_address
from router_fleet.utils.transport import (
    EVM_TRANSPORT_ERRORS,
    HTTP_STATUS_ERRORS,
    is_retryable_http_error,
)

logger = logging.getLogger(__name__)


class EvmAdapter(ChainAdapter):
    """Adapter for standard EVM networks"""

    family = ChainFamily.EVM

    def __init__(
        self,
        network: str,
        w3: Any,
        signer: TransactionSigner,
        artifacts: ArtifactStore,
        *,
        deploy_factory: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(network, signer, artifacts, **kwargs)
        self._w3 = w3
        self._deploy_factory = deploy_factory

    @property
    def w3(self) -> Any:
        return self._w3

    def _require_factory(self) -> str:
        if not self._deploy_factory:
            raise InvalidConfig(f"No deploy factory configured for {self._network}")
        return self.to_canonical(self._deploy_factory)

    async def call(self, address: str, abi: list[dict[str, Any]], method: str, *args: Any) -> Any:
        contract = self._w3.eth.contract(address=address, abi=abi)
        try:
            return await getattr(contract.functions, method)(*args).call()
        except (ContractLogicError, BadFunctionCallOutput, Web3RPCError) as e:
            raise ChainError(f"{method}() on {address} failed: {e}") from e
        except EVM_TRANSPORT_ERRORS as e:
            raise RpcUnavailable(f"{method}() on {address}: {e}") from e
        except HTTP_STATUS_ERRORS as e:
            if is_retryable_http_error(e):
                raise RpcUnavailable(f"{method}() on {address}: {e}") from e
            raise ChainError(f"{method}() on {address} failed: {e}") from e

    async def get_code(self, address: str) -> bytes:
        try:
            return bytes(await self._w3.eth.get_code(address))
        except EVM_TRANSPORT_ERRORS as e:
            raise RpcUnavailable(f"get_code({address}): {e}") from e
        except HTTP_STATUS_ERRORS as e:
            if is_retryable_http_error(e):
                raise RpcUnavailable(f"get_code({address}): {e}") from e
            raise ChainError(f"get_code({address}) failed: {e}") from e

    def _derive_deploy_address(
        self, artifact: ContractArtifact, salt: bytes, encoded_args: bytes
    ) -> str:
        init_code = build_init_code(artifact.bytecode, encoded_args)
        return compute_create2_address(self._require_factory(), salt, init_code)

    async def _submit_deploy(
        self, artifact: ContractArtifact, salt: bytes, encoded_args: bytes
    ) -> str:
        factory = self.to_native(self._require_factory())
        init_code = build_init_code(artifact.bytecode, encoded_args)
        return await self._signer.write_contract(
            factory, DEPLOY_FACTORY_ABI, "deploy", [salt, init_code, 0]
        )
