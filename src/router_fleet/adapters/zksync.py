"""
zkSync-family adapter: EVM reads, deploys through the ContractDeployer system contract
"""

import logging

from router_fleet.abi import ZKSYNC_CONTRACT_DEPLOYER_ABI
from router_fleet.adapters.evm import EvmAdapter
from router_fleet.artifacts import ContractArtifact
from router_fleet.config import ChainConfig, ChainFamily
from router_fleet.utils.create2 import compute_zksync_create2_address, hash_zksync_bytecode

logger = logging.getLogger(__name__)


class ZkSyncAdapter(EvmAdapter):
    """
    Adapter for zkSync-style networks.

    Contracts are created by ``ContractDeployer.create2`` called directly by
    the signer, so the sender in the address rule is the signer account. The
    artifact must be zkEVM bytecode and already known to the network.
    """

    family = ChainFamily.ZKSYNC

    def _derive_deploy_address(
        self, artifact: ContractArtifact, salt: bytes, encoded_args: bytes
    ) -> str:
        return compute_zksync_create2_address(
            self._signer.get_address(),
            salt,
            hash_zksync_bytecode(artifact.bytecode),
            encoded_args,
        )

    async def _submit_deploy(
        self, artifact: ContractArtifact, salt: bytes, encoded_args: bytes
    ) -> str:
        bytecode_hash = hash_zksync_bytecode(artifact.bytecode)
        logger.debug("%s bytecode hash for %s: 0x%s", self._network, artifact.name, bytecode_hash.hex())
        return await self._signer.write_contract(
            ChainConfig.ZKSYNC_CONTRACT_DEPLOYER,
            ZKSYNC_CONTRACT_DEPLOYER_ABI,
            "create2",
            [salt, bytecode_hash, encoded_args],
        )
