"""
Build the chain adapter for a network from runtime settings
"""

import logging

from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.middleware import ExtraDataToPOAMiddleware

from router_fleet.adapters.base import ChainAdapter
from router_fleet.adapters.evm import EvmAdapter
from router_fleet.adapters.tron import TronAdapter
from router_fleet.adapters.zksync import ZkSyncAdapter
from router_fleet.artifacts import ArtifactStore
from router_fleet.config import ChainConfig, ChainFamily
from router_fleet.exceptions import ConfigurationError
from router_fleet.settings import Settings
from router_fleet.signers.evm_signer import EvmSigner
from router_fleet.signers.tron_signer import TronSigner
from router_fleet.utils.tron_client import create_async_tron_client

logger = logging.getLogger(__name__)


def create_web3(rpc_url: str) -> AsyncWeb3:
    w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))
    w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
    return w3


def create_adapter(network: str, settings: Settings) -> ChainAdapter:
    """
    Create the adapter for a network.

    Raises:
        UnsupportedNetworkError: If the network is unknown
        ConfigurationError: If the key or RPC URL for the network is missing
    """
    family = ChainConfig.get_family(network)

    if family == ChainFamily.TRON:
        if not settings.tron_private_key:
            raise ConfigurationError(f"TRON_PRIVATE_KEY is required for {network}")
        client = create_async_tron_client(
            ChainConfig.get_tron_network(network), ChainConfig.get_rpc_url(network)
        )
        signer = TronSigner(client, settings.tron_private_key, fee_limit=settings.tron_fee_limit)
        logger.info("%s: Tron adapter, signer %s", network, signer.get_address())
        return TronAdapter(
            network,
            client,
            signer,
            ArtifactStore(settings.artifacts_path),
            deploy_factory=ChainConfig.get_deploy_factory(network),
            tx_timeout=settings.tx_timeout,
        )

    if not settings.evm_private_key:
        raise ConfigurationError(f"PRIVATE_KEY is required for {network}")
    rpc_url = ChainConfig.get_rpc_url(network)
    if not rpc_url:
        raise ConfigurationError(f"No RPC URL for {network}; set {network.upper()}_RPC_URL")

    w3 = create_web3(rpc_url)
    signer = EvmSigner(w3, settings.evm_private_key)

    if family == ChainFamily.ZKSYNC:
        logger.info("%s: zkSync adapter (%s), signer %s", network, rpc_url, signer.get_address())
        return ZkSyncAdapter(
            network,
            w3,
            signer,
            ArtifactStore(settings.zk_artifacts_path),
            tx_timeout=settings.tx_timeout,
        )

    logger.info("%s: EVM adapter (%s), signer %s", network, rpc_url, signer.get_address())
    return EvmAdapter(
        network,
        w3,
        signer,
        ArtifactStore(settings.artifacts_path),
        deploy_factory=ChainConfig.get_deploy_factory(network),
        tx_timeout=settings.tx_timeout,
    )
