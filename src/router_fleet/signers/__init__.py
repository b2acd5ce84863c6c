"""
Transaction signers
"""

from router_fleet.signers.base import TransactionSigner
from router_fleet.signers.evm_signer import EvmSigner
from router_fleet.signers.tron_signer import TronSigner

__all__ = [
    "TransactionSigner",
    "EvmSigner",
    "TronSigner",
]
