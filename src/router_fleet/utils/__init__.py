"""
Utility functions
"""

from router_fleet.utils.create2 import (
    build_init_code,
    compute_create2_address,
    compute_zksync_create2_address,
    hash_salt,
    hash_zksync_bytecode,
)
from router_fleet.utils.retry import with_backoff

__all__ = [
    "build_init_code",
    "compute_create2_address",
    "compute_zksync_create2_address",
    "hash_salt",
    "hash_zksync_bytecode",
    "with_backoff",
]
