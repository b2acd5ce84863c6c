"""
DeterministicDeployer - salted deployments that are predicted, checked and recorded
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from eth_utils import keccak

from router_fleet.adapters.base import ChainAdapter
from router_fleet.deployments.store import DeploymentStore
from router_fleet.exceptions import AddressAlreadyDeployed, DeployVerificationFailed
from router_fleet.utils.create2 import hash_salt
from router_fleet.utils.retry import with_backoff

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeploymentResult:
    """Outcome of a deployment, with what an explorer verification step needs"""

    network: str
    contract_name: str
    address: str
    salt: str
    constructor_args: tuple[Any, ...] = field(default_factory=tuple)
    encoded_args: str = "0x"
    deployed: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "network": self.network,
            "contractName": self.contract_name,
            "address": self.address,
            "salt": self.salt,
            "saltHash": "0x" + hash_salt(self.salt).hex(),
            "constructorArgs": [str(a) for a in self.constructor_args],
            "encodedArgs": self.encoded_args,
            "deployed": self.deployed,
        }


class DeterministicDeployer:
    """
    Deploy contracts at addresses derived from (factory, salt, init code).

    Deployment is append-only per salt: an existing record or existing code
    at the predicted address stops the deployment before any transaction is
    sent.
    """

    def __init__(
        self,
        adapter: ChainAdapter,
        store: DeploymentStore,
        *,
        rpc_attempts: int = 3,
        backoff_base: float = 1.0,
        verify_code_hash: bool = True,
    ) -> None:
        self._adapter = adapter
        self._store = store
        self._rpc_attempts = rpc_attempts
        self._backoff_base = backoff_base
        self._verify_code_hash = verify_code_hash

    @property
    def adapter(self) -> ChainAdapter:
        return self._adapter

    def predict(
        self, contract_name: str, constructor_args: Iterable[Any], salt: str
    ) -> DeploymentResult:
        """Compute the deployment address without sending anything"""
        args = tuple(constructor_args)
        address = self._adapter.compute_deploy_address(contract_name, salt, args)
        _, encoded = self._adapter.encode_deployment(contract_name, args)
        return DeploymentResult(
            network=self._adapter.network,
            contract_name=contract_name,
            address=address,
            salt=salt,
            constructor_args=args,
            encoded_args="0x" + encoded.hex(),
            deployed=False,
        )

    async def deploy(
        self,
        contract_name: str,
        constructor_args: Iterable[Any],
        salt: str,
        redeploy: bool = False,
    ) -> DeploymentResult:
        """
        Deploy a contract and record its address.

        Args:
            contract_name: Artifact name
            constructor_args: Constructor arguments, addresses in any accepted form
            salt: Operator salt
            redeploy: Replace an existing record (requires a new salt)

        Raises:
            AddressAlreadyDeployed: A record exists (without ``redeploy``) or
                code already exists at the predicted address
            DeployVerificationFailed: The deployed code does not match
        """
        network = self._adapter.network
        async with self._store.lock(network, contract_name):
            existing = self._store.get(network, contract_name)
            if existing is not None and not redeploy:
                raise AddressAlreadyDeployed(contract_name, existing)

            prediction = self.predict(contract_name, constructor_args, salt)
            address = await self._adapter.deploy(contract_name, salt, prediction.constructor_args)
            await self._verify(contract_name, prediction.address, address)
            await self._store.put(network, contract_name, address, overwrite=redeploy)

        logger.info("%s %s deployed and recorded at %s", network, contract_name, address)
        return DeploymentResult(
            network=network,
            contract_name=contract_name,
            address=address,
            salt=salt,
            constructor_args=prediction.constructor_args,
            encoded_args=prediction.encoded_args,
        )

    async def _verify(self, contract_name: str, predicted: str, address: str) -> None:
        if self._adapter.to_canonical(address) != self._adapter.to_canonical(predicted):
            raise DeployVerificationFailed(
                f"{contract_name} deployed at {address}, expected {predicted}"
            )

        code = await with_backoff(
            lambda: self._adapter.get_code(address),
            attempts=self._rpc_attempts,
            base_delay=self._backoff_base,
            label=f"{self._adapter.network} get_code({address})",
        )
        if not code:
            raise DeployVerificationFailed(f"No code at {address} after deploying {contract_name}")

        expected = self._adapter.artifacts.load(contract_name).deployed_bytecode
        if self._verify_code_hash and expected is not None and keccak(code) != keccak(expected):
            raise DeployVerificationFailed(
                f"{contract_name} code hash at {address} is 0x{keccak(code).hex()}, "
                f"expected 0x{keccak(expected).hex()}"
            )
