"""
Chain adapters
"""

from router_fleet.adapters.base import ChainAdapter
from router_fleet.adapters.evm import EvmAdapter
from router_fleet.adapters.tron import TronAdapter
from router_fleet.adapters.zksync import ZkSyncAdapter

__all__ = [
    "ChainAdapter",
    "EvmAdapter",
    "TronAdapter",
    "ZkSyncAdapter",
]
