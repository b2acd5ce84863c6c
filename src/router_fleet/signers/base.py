"""
Transaction signer base interface
"""

from abc import ABC, abstractmethod
from typing import Any

from router_fleet.types import TxReceipt


class TransactionSigner(ABC):
    """
    Abstract base class for transaction signers.

    Responsible for building, signing and broadcasting state-changing
    contract calls and waiting for their inclusion. Implementations raise
    TxReverted when the call cannot succeed on-chain and RpcUnavailable on
    transport failure.
    """

    @abstractmethod
    def get_address(self) -> str:
        """Get the signer's account address in the chain's native form"""
        pass

    @abstractmethod
    async def write_contract(
        self,
        contract_address: str,
        abi: list[dict[str, Any]],
        method: str,
        args: list[Any],
    ) -> str:
        """
        Execute a contract write transaction.

        Args:
            contract_address: Contract address (native form)
            abi: Contract ABI
            method: Method name
            args: Method arguments

        Returns:
            Transaction hash
        """
        pass

    @abstractmethod
    async def wait_for_transaction_receipt(
        self,
        tx_hash: str,
        timeout: float = 120,
    ) -> TxReceipt:
        """
        Wait for transaction inclusion.

        Args:
            tx_hash: Transaction hash
            timeout: Timeout in seconds

        Returns:
            Transaction receipt
        """
        pass
