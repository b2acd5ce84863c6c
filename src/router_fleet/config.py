"""
Chain registry
Centralized configuration for chain families, chain ids, RPC endpoints and factories
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Dict

from router_fleet.exceptions import UnsupportedNetworkError

# Router fee rates are parts per million
FEE_DENOMINATOR = 1_000_000


class ChainFamily(str, Enum):
    """Chain families sharing an address format and deployment primitive"""

    EVM = "evm"
    TRON = "tron"
    ZKSYNC = "zksync"


@dataclass(frozen=True)
class RouterSpec:
    """Router contract deployed for one protocol version"""

    contract_name: str
    supports_referrer_fee: bool = False


class ChainConfig:
    """Static chain identity table"""

    # Networks outside standard EVM
    FAMILIES: Dict[str, ChainFamily] = {
        "Tron": ChainFamily.TRON,
        "TronTest": ChainFamily.TRON,
        "zkSync": ChainFamily.ZKSYNC,
        "zkLink": ChainFamily.ZKSYNC,
    }

    CHAIN_IDS: Dict[str, int] = {
        "Eth": 1,
        "Bsc": 56,
        "Matic": 137,
        "Klaytn": 8217,
        "Conflux": 1030,
        "Map": 22776,
        "Tron": 728126428,  # 0x2b6653dc
        "Merlin": 4200,
        "Blast": 81457,
        "Base": 8453,
        "Optimism": 10,
        "Arbitrum": 42161,
        "Linea": 59144,
        "Scroll": 534352,
        "Mantle": 5000,
        "zkSync": 324,
        "zkLink": 810180,
        "BscTest": 97,
        "Makalu": 212,
        "TronTest": 3448148188,  # nile, 0xcd8690dc
    }

    # tronpy network names
    TRON_NETWORKS: Dict[str, str] = {
        "Tron": "mainnet",
        "TronTest": "nile",
    }

    RPC_URLS: Dict[str, str] = {
        "Eth": "https://eth.llamarpc.com",
        "Bsc": "https://bsc-dataseed.binance.org/",
        "Matic": "https://polygon-rpc.com",
        "Base": "https://mainnet.base.org",
        "Optimism": "https://mainnet.optimism.io",
        "Arbitrum": "https://arb1.arbitrum.io/rpc",
        "Linea": "https://rpc.linea.build",
        "Scroll": "https://rpc.scroll.io",
        "Mantle": "https://rpc.mantle.xyz",
        "Blast": "https://rpc.blast.io",
        "zkSync": "https://mainnet.era.zksync.io",
        "BscTest": "https://data-seed-prebsc-1-s1.binance.org:8545/",
    }

    # Salted deploy factory shared by the EVM networks
    DEFAULT_DEPLOY_FACTORY = "0x6258e4d2950757A749a4d4683A7342261ce12471"

    # Tron has no shared factory; configure one per network
    DEPLOY_FACTORIES: Dict[str, str] = {}

    # zkSync system contract handling contract creation
    ZKSYNC_CONTRACT_DEPLOYER = "0x0000000000000000000000000000000000008006"

    ROUTERS: Dict[str, RouterSpec] = {
        "v2": RouterSpec("ButterRouterV2"),
        "v3": RouterSpec("ButterRouterV4", supports_referrer_fee=True),
    }

    @staticmethod
    def _env_key(network: str, suffix: str) -> str:
        return f"{network.upper()}_{suffix}"

    @classmethod
    def get_family(cls, network: str) -> ChainFamily:
        """Get the chain family of a network

        Raises:
            UnsupportedNetworkError: If the network is unknown
        """
        if network not in cls.CHAIN_IDS:
            raise UnsupportedNetworkError(f"Unsupported network: {network}")
        return cls.FAMILIES.get(network, ChainFamily.EVM)

    @classmethod
    def get_chain_id(cls, network: str) -> int:
        """Get chain ID for network

        Raises:
            UnsupportedNetworkError: If network is not supported
        """
        chain_id = cls.CHAIN_IDS.get(network)
        if chain_id is None:
            raise UnsupportedNetworkError(f"Unsupported network: {network}")
        return chain_id

    @classmethod
    def get_rpc_url(cls, network: str) -> str | None:
        """Get RPC URL for a network, ``<NETWORK>_RPC_URL`` taking precedence.

        Returns:
            RPC URL string, or None if not configured
        """
        return os.getenv(cls._env_key(network, "RPC_URL")) or cls.RPC_URLS.get(network)

    @classmethod
    def get_tron_network(cls, network: str) -> str:
        """Get the tronpy network name for a Tron network"""
        name = cls.TRON_NETWORKS.get(network)
        if name is None:
            raise UnsupportedNetworkError(f"Not a Tron network: {network}")
        return name

    @classmethod
    def get_deploy_factory(cls, network: str) -> str | None:
        """Get the salted deploy factory for a network.

        ``<NETWORK>_DEPLOY_FACTORY`` takes precedence. EVM networks fall back to
        the shared factory; Tron networks have no default.
        """
        override = os.getenv(cls._env_key(network, "DEPLOY_FACTORY"))
        if override:
            return override
        if network in cls.DEPLOY_FACTORIES:
            return cls.DEPLOY_FACTORIES[network]
        if cls.get_family(network) == ChainFamily.EVM:
            return cls.DEFAULT_DEPLOY_FACTORY
        return None

    @classmethod
    def get_router_spec(cls, version: str) -> RouterSpec:
        spec = cls.ROUTERS.get(version)
        if spec is None:
            raise UnsupportedNetworkError(f"Unknown router version: {version}")
        return spec
