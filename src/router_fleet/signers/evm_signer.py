"""
EvmSigner - EVM transaction signer implementation
"""

import logging
from typing import Any

from eth_account import Account
from web3 import Web3
from web3.exceptions import (
    ContractLogicError,
    TimeExhausted,
    Web3RPCError,
)

from router_fleet.exceptions import RpcUnavailable, TxReverted
from router_fleet.signers.base import TransactionSigner
from router_fleet.types import TxReceipt
from router_fleet.utils.transport import (
    EVM_TRANSPORT_ERRORS,
    HTTP_STATUS_ERRORS,
    is_retryable_http_error,
)

logger = logging.getLogger(__name__)


class EvmSigner(TransactionSigner):
    """EVM signer implementation using web3.py"""

    def __init__(self, w3: Any, private_key: str) -> None:
        if not private_key.startswith("0x"):
            private_key = "0x" + private_key
        self._w3 = w3
        self._account = Account.from_key(private_key)
        self._address = self._account.address
        logger.debug("EvmSigner initialized", extra={"address": self._address})

    @classmethod
    def from_private_key(cls, w3: Any, private_key: str) -> "EvmSigner":
        """Create signer from private key"""
        return cls(w3, private_key)

    def get_address(self) -> str:
        return self._address

    async def write_contract(
        self,
        contract_address: str,
        abi: list[dict[str, Any]],
        method: str,
        args: list[Any],
    ) -> str:
        """Build, sign and broadcast a contract call"""
        contract = self._w3.eth.contract(address=contract_address, abi=abi)
        func = getattr(contract.functions, method)

        try:
            tx = await func(*args).build_transaction(
                {
                    "from": self._address,
                    "nonce": await self._w3.eth.get_transaction_count(self._address, "pending"),
                    "chainId": await self._w3.eth.chain_id,
                }
            )
        except ContractLogicError as e:
            # gas estimation already proves the call would revert
            raise TxReverted(f"{method} would revert: {e.message or e}") from e
        except Web3RPCError as e:
            raise TxReverted(f"{method} rejected by node: {e}") from e
        except EVM_TRANSPORT_ERRORS as e:
            raise RpcUnavailable(f"{method} build failed: {e}") from e
        except HTTP_STATUS_ERRORS as e:
            if is_retryable_http_error(e):
                raise RpcUnavailable(f"{method} build failed: {e}") from e
            raise TxReverted(f"{method} rejected by node: {e}") from e

        signed_tx = self._account.sign_transaction(tx)
        # the hash is fixed once signed; the node may hold the tx even if the call fails
        tx_hash_hex = Web3.to_hex(signed_tx.hash)
        try:
            await self._w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        except Web3RPCError as e:
            raise TxReverted(f"{method} rejected by node: {e}") from e
        except EVM_TRANSPORT_ERRORS as e:
            raise RpcUnavailable(f"{method} broadcast failed: {e}", tx_hash=tx_hash_hex) from e
        except HTTP_STATUS_ERRORS as e:
            if is_retryable_http_error(e):
                raise RpcUnavailable(
                    f"{method} broadcast failed: {e}", tx_hash=tx_hash_hex
                ) from e
            raise TxReverted(f"{method} rejected by node: {e}") from e

        logger.info("Sent %s to %s: %s", method, contract_address, tx_hash_hex)
        return tx_hash_hex

    async def wait_for_transaction_receipt(
        self,
        tx_hash: str,
        timeout: float = 120,
    ) -> TxReceipt:
        """Wait for EVM transaction inclusion"""
        try:
            receipt = await self._w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
        except TimeExhausted as e:
            raise RpcUnavailable(
                f"Transaction {tx_hash} not included within {timeout}s", tx_hash=tx_hash
            ) from e
        except (*EVM_TRANSPORT_ERRORS, *HTTP_STATUS_ERRORS) as e:
            raise RpcUnavailable(f"Receipt lookup failed: {e}", tx_hash=tx_hash) from e

        return TxReceipt(
            tx_hash=tx_hash,
            block_number=int(receipt["blockNumber"]),
            status="confirmed" if receipt["status"] == 1 else "failed",
        )
