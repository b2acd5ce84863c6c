"""
Tron chain adapter: tronpy reads, TVM-rule salted deploys through a factory
"""

import logging
from typing import Any

from tronpy.exceptions import AddressNotFound, ApiError, BadAddress, ValidationError

from router_fleet.abi import DEPLOY_FACTORY_ABI
from router_fleet.adapters.base import ChainAdapter
from router_fleet.artifacts import ArtifactStore, ContractArtifact
from router_fleet.config import ChainFamily
from router_fleet.exceptions import ChainError, ContractNotFound, InvalidConfig, RpcUnavailable
from router_fleet.signers.base import TransactionSigner
from router_fleet.utils.create2 import TVM_CREATE2_PREFIX, build_init_code, compute_create2_address
from router_fleet.utils.transport import (
    HTTP_STATUS_ERRORS,
    TRON_TRANSPORT_ERRORS,
    is_retryable_http_error,
)

logger = logging.getLogger(__name__)


class TronAdapter(ChainAdapter):
    """Adapter for Tron networks. Native addresses are base58check.

    Deploys always go through the configured CREATE2 factory rather than a
    direct contract-creation transaction, whose address depends on the
    sender and transaction id and so cannot be predicted.
    """

    family = ChainFamily.TRON

    def __init__(
        self,
        network: str,
        client: Any,
        signer: TransactionSigner,
        artifacts: ArtifactStore,
        *,
        deploy_factory: str | None = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("tx_timeout", 60)
        super().__init__(network, signer, artifacts, **kwargs)
        self._client = client
        self._deploy_factory = deploy_factory

    @property
    def client(self) -> Any:
        return self._client

    def _require_factory(self) -> str:
        # creation without a factory cannot be predicted on TVM
        if not self._deploy_factory:
            raise InvalidConfig(
                f"No deploy factory configured for {self._network}; "
                f"set {self._network.upper()}_DEPLOY_FACTORY"
            )
        return self.to_canonical(self._deploy_factory)

    async def call(self, address: str, abi: list[dict[str, Any]], method: str, *args: Any) -> Any:
        try:
            contract = await self._client.get_contract(address)
            contract.abi = abi
            return await getattr(contract.functions, method)(*args)
        except AddressNotFound as e:
            raise ContractNotFound(address, self._network) from e
        except (ApiError, BadAddress, ValidationError) as e:
            raise ChainError(f"{method}() on {address} failed: {e}") from e
        except TRON_TRANSPORT_ERRORS as e:
            raise RpcUnavailable(f"{method}() on {address}: {e}") from e
        except HTTP_STATUS_ERRORS as e:
            if is_retryable_http_error(e):
                raise RpcUnavailable(f"{method}() on {address}: {e}") from e
            raise ChainError(f"{method}() on {address} failed: {e}") from e

    async def get_code(self, address: str) -> bytes:
        try:
            info = await self._client.provider.make_request(
                "wallet/getcontractinfo", {"value": address, "visible": True}
            )
        except TRON_TRANSPORT_ERRORS as e:
            raise RpcUnavailable(f"getcontractinfo({address}): {e}") from e
        except HTTP_STATUS_ERRORS as e:
            if is_retryable_http_error(e):
                raise RpcUnavailable(f"getcontractinfo({address}): {e}") from e
            raise ChainError(f"getcontractinfo({address}) failed: {e}") from e
        runtime = (info or {}).get("runtimecode") or ""
        return bytes.fromhex(runtime)

    def _derive_deploy_address(
        self, artifact: ContractArtifact, salt: bytes, encoded_args: bytes
    ) -> str:
        init_code = build_init_code(artifact.bytecode, encoded_args)
        return compute_create2_address(
            self._require_factory(), salt, init_code, prefix=TVM_CREATE2_PREFIX
        )

    async def _submit_deploy(
        self, artifact: ContractArtifact, salt: bytes, encoded_args: bytes
    ) -> str:
        factory = self.to_native(self._require_factory())
        init_code = build_init_code(artifact.bytecode, encoded_args)
        return await self._signer.write_contract(
            factory, DEPLOY_FACTORY_ABI, "deploy", [salt, init_code, 0]
        )
