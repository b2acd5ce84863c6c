"""
Base chain adapter.

Encapsulates chain-family differences (address format, RPC client, salted
deployment primitive) behind one interface so the reconciler stays
family-agnostic.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable

from router_fleet.abi import ROUTER_V4_ABI, get_router_abi
from router_fleet.actions import (
    Authorize,
    RouterAction,
    SetBridge,
    SetFee,
    SetFeeManager,
    SetReferrerMaxFee,
)
from router_fleet.address import AddressCodec
from router_fleet.artifacts import ArtifactStore, ContractArtifact
from router_fleet.config import ChainFamily
from router_fleet.exceptions import AddressAlreadyDeployed, ContractNotFound, TxReverted
from router_fleet.signers.base import TransactionSigner
from router_fleet.types import ObservedState, TxReceipt
from router_fleet.utils.create2 import hash_salt

logger = logging.getLogger(__name__)


class ChainAdapter(ABC):
    """Read state, send transactions and deploy contracts on one network"""

    family: ChainFamily = ChainFamily.EVM

    def __init__(
        self,
        network: str,
        signer: TransactionSigner,
        artifacts: ArtifactStore,
        *,
        codec: AddressCodec | None = None,
        tx_timeout: float = 120,
    ) -> None:
        self._network = network
        self._signer = signer
        self._artifacts = artifacts
        self._codec = codec or AddressCodec()
        self._tx_timeout = tx_timeout

    @property
    def network(self) -> str:
        return self._network

    @property
    def signer(self) -> TransactionSigner:
        return self._signer

    @property
    def artifacts(self) -> ArtifactStore:
        return self._artifacts

    def to_native(self, address: str) -> str:
        return self._codec.to_native(address, self.family)

    def to_canonical(self, address: str) -> str:
        return self._codec.to_canonical(address, self.family)

    # ------------------------------------------------------------------
    # Family-specific primitives
    # ------------------------------------------------------------------

    @abstractmethod
    async def call(self, address: str, abi: list[dict[str, Any]], method: str, *args: Any) -> Any:
        """Read-only contract call at a native address"""

    @abstractmethod
    async def get_code(self, address: str) -> bytes:
        """Runtime code at a native address, empty when none"""

    @abstractmethod
    def _derive_deploy_address(
        self, artifact: ContractArtifact, salt: bytes, encoded_args: bytes
    ) -> str:
        """Canonical address of a salted deployment"""

    @abstractmethod
    async def _submit_deploy(
        self, artifact: ContractArtifact, salt: bytes, encoded_args: bytes
    ) -> str:
        """Send the deployment transaction, returning its hash"""

    # ------------------------------------------------------------------
    # Router state
    # ------------------------------------------------------------------

    async def read_router_state(
        self,
        router: str,
        executors: Iterable[str] = (),
        referrer_fee: bool = True,
    ) -> ObservedState:
        """
        Read the live configuration of a router.

        Args:
            router: Router address (any accepted form)
            executors: Candidate executors whose authorization is checked
            referrer_fee: Whether the router exposes referrer fee caps

        Raises:
            ContractNotFound: If there is no code at the router address
            RpcUnavailable: On transport failure
        """
        native = self.to_native(self.to_canonical(router))
        if not await self.get_code(native):
            raise ContractNotFound(native, self._network)

        abi = get_router_abi(referrer_fee)

        async def read(method: str, *args: Any) -> Any:
            return await self.call(native, abi, method, *args)

        authorized = set()
        for executor in executors:
            canonical = self.to_canonical(executor)
            if await read("approved", self.to_native(canonical)):
                authorized.add(canonical)

        max_fee_rate = max_native_fee = None
        if referrer_fee:
            max_fee_rate = int(await read("maxFeeRate"))
            max_native_fee = int(await read("maxNativeFee"))

        state = ObservedState(
            router=native,
            owner=self.to_canonical(await read("owner")),
            fee_manager=self.to_canonical(await read("feeManager")),
            bridge_address=self.to_canonical(await read("bridgeAddress")),
            wrapped_token=self.to_canonical(await read("wToken")),
            fee_receiver=self.to_canonical(await read("feeReceiver")),
            fee_rate=int(await read("routerFeeRate")),
            fixed_fee=int(await read("routerFixedFee")),
            authorized_executors=frozenset(authorized),
            max_referrer_fee_rate=max_fee_rate,
            max_referrer_native_fee=max_native_fee,
        )
        logger.debug("%s router %s state: %s", self._network, native, state.to_dict())
        return state

    def encode_action(self, action: RouterAction) -> tuple[str, list[Any]]:
        """Router method and native-form arguments for an action"""
        if isinstance(action, Authorize):
            return "setAuthorization", [[self.to_native(action.executor)], action.flag]
        if isinstance(action, SetFee):
            return "setFee", [self.to_native(action.receiver), action.rate, action.fixed]
        if isinstance(action, SetBridge):
            return "setBridgeAddress", [self.to_native(action.address)]
        if isinstance(action, SetFeeManager):
            return "setFeeManager", [self.to_native(action.address)]
        if isinstance(action, SetReferrerMaxFee):
            return "setReferrerMaxFee", [action.rate, action.native]
        raise TypeError(f"{type(action).__name__} is not a router action")

    async def send_action(self, router: str, action: RouterAction) -> TxReceipt:
        """
        Submit a router action and block until it is included.

        Raises:
            TxReverted: If the transaction reverts or cannot be built
            RpcUnavailable: On transport failure (``tx_hash`` set once broadcast)
        """
        method, args = self.encode_action(action)
        native = self.to_native(self.to_canonical(router))
        logger.info("%s %s.%s(%s)", self._network, native, method, args)
        tx_hash = await self._signer.write_contract(native, ROUTER_V4_ABI, method, args)
        return await self.wait_for_receipt(tx_hash)

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        """Wait for inclusion; a failed receipt raises TxReverted"""
        receipt = await self._signer.wait_for_transaction_receipt(tx_hash, self._tx_timeout)
        if not receipt.succeeded:
            raise TxReverted("transaction failed on-chain", tx_hash=tx_hash)
        return receipt

    # ------------------------------------------------------------------
    # Deployment
    # ------------------------------------------------------------------

    def _canonical_arg(self, abi_type: str, value: Any) -> Any:
        if abi_type == "address":
            return self.to_canonical(value)
        if abi_type == "address[]":
            return [self.to_canonical(v) for v in value]
        return value

    def encode_deployment(
        self, contract_name: str, constructor_args: Iterable[Any]
    ) -> tuple[ContractArtifact, bytes]:
        """Load the artifact and ABI-encode constructor arguments"""
        artifact = self._artifacts.load(contract_name)
        args = list(constructor_args)
        types = artifact.constructor_types()
        if len(types) == len(args):
            args = [self._canonical_arg(t, a) for t, a in zip(types, args)]
        return artifact, artifact.encode_constructor_args(args)

    def compute_deploy_address(
        self, contract_name: str, salt: str, constructor_args: Iterable[Any] = ()
    ) -> str:
        """
        Compute the salted deployment address without touching the network.

        Returns:
            Address in the chain's native form
        """
        artifact, encoded_args = self.encode_deployment(contract_name, constructor_args)
        canonical = self._derive_deploy_address(artifact, hash_salt(salt), encoded_args)
        return self.to_native(canonical)

    async def deploy(
        self, contract_name: str, salt: str, constructor_args: Iterable[Any] = ()
    ) -> str:
        """
        Deploy a contract at its salted address.

        Raises:
            AddressAlreadyDeployed: If code already exists at the address;
                no transaction is sent in that case
        """
        args = list(constructor_args)
        address = self.compute_deploy_address(contract_name, salt, args)
        if await self.get_code(address):
            raise AddressAlreadyDeployed(contract_name, address)

        artifact, encoded_args = self.encode_deployment(contract_name, args)
        logger.info("%s deploying %s to %s (salt %r)", self._network, contract_name, address, salt)
        tx_hash = await self._submit_deploy(artifact, hash_salt(salt), encoded_args)
        receipt = await self.wait_for_receipt(tx_hash)
        logger.info(
            "%s deployed %s at %s in block %s", self._network, contract_name, address,
            receipt.block_number,
        )
        return address
