"""
TronSigner - TRON transaction signer implementation
"""

import asyncio
import json
import logging
import time
from typing import Any

from tronpy.exceptions import (
    ApiError,
    BadAddress,
    TransactionError,
    TransactionNotFound,
    ValidationError,
)
from tronpy.keys import PrivateKey

from router_fleet.exceptions import RpcUnavailable, TxReverted
from router_fleet.signers.base import TransactionSigner
from router_fleet.types import TxReceipt
from router_fleet.utils.transport import (
    HTTP_STATUS_ERRORS,
    TRON_TRANSPORT_ERRORS,
    is_retryable_http_error,
)

logger = logging.getLogger(__name__)

REJECTION_ERRORS = (ApiError, BadAddress, TransactionError, ValidationError)

# 15000 TRX, in SUN
DEFAULT_FEE_LIMIT = 15_000_000_000


class TronSigner(TransactionSigner):
    """TRON signer implementation using tronpy AsyncTron"""

    def __init__(
        self,
        client: Any,
        private_key: str,
        fee_limit: int = DEFAULT_FEE_LIMIT,
        poll_interval: float = 3.0,
    ) -> None:
        clean_key = private_key[2:] if private_key.startswith("0x") else private_key
        self._client = client
        self._key = PrivateKey(bytes.fromhex(clean_key))
        self._address = self._key.public_key.to_base58check_address()
        self._fee_limit = fee_limit
        self._poll_interval = poll_interval

    @classmethod
    def from_private_key(cls, client: Any, private_key: str, **kwargs: Any) -> "TronSigner":
        """Create signer from private key"""
        return cls(client, private_key, **kwargs)

    def get_address(self) -> str:
        return self._address

    async def write_contract(
        self,
        contract_address: str,
        abi: list[dict[str, Any]],
        method: str,
        args: list[Any],
    ) -> str:
        """Execute contract transaction on TRON (async)."""
        self._log_contract_parameters(method, args)
        try:
            contract = await self._client.get_contract(contract_address)
            contract.abi = abi
            func = getattr(contract.functions, method)

            # AsyncTron: func(*args) returns a coroutine resolving to the builder
            txn_builder = await func(*args)
            txn_builder = txn_builder.with_owner(self._address).fee_limit(self._fee_limit)
            txn = await txn_builder.build()
            txn = txn.sign(self._key)
        except REJECTION_ERRORS as e:
            raise self._rejected(method, e) from e
        except TRON_TRANSPORT_ERRORS as e:
            raise RpcUnavailable(f"{method} build failed: {e}") from e
        except HTTP_STATUS_ERRORS as e:
            if is_retryable_http_error(e):
                raise RpcUnavailable(f"{method} build failed: {e}") from e
            raise self._rejected(method, e) from e

        # txid is fixed once built; the node may hold the tx even if broadcast fails
        try:
            result = await txn.broadcast()
        except REJECTION_ERRORS as e:
            raise self._rejected(method, e) from e
        except TRON_TRANSPORT_ERRORS as e:
            raise RpcUnavailable(f"{method} broadcast failed: {e}", tx_hash=txn.txid) from e
        except HTTP_STATUS_ERRORS as e:
            if is_retryable_http_error(e):
                raise RpcUnavailable(f"{method} broadcast failed: {e}", tx_hash=txn.txid) from e
            raise self._rejected(method, e) from e

        tx_hash = result.get("txid") or txn.txid
        logger.info("Sent %s to %s: %s", method, contract_address, tx_hash)
        return tx_hash

    def _rejected(self, method: str, error: Exception) -> TxReverted:
        error_msg = str(error)
        if "BANDWITH_ERROR" in error_msg or "bandwidth" in error_msg.lower():
            logger.error("Account %s lacks bandwidth to broadcast", self._address)
        elif "ENERGY" in error_msg:
            logger.error("Account %s lacks energy to execute the contract", self._address)
        return TxReverted(f"{method} rejected: [{type(error).__name__}] {error_msg}")

    def _log_contract_parameters(self, method: str, args: list[Any]) -> None:
        """Log contract call parameters as JSON"""

        def serialize_value(value: Any) -> Any:
            if isinstance(value, bytes):
                return f"0x{value.hex()}"
            elif isinstance(value, (tuple, list)):
                return [serialize_value(item) for item in value]
            elif isinstance(value, (bool, int, str)):
                return value
            return str(value)

        contract_call = {"method": method, "arguments": [serialize_value(a) for a in args]}
        logger.debug("Contract call parameters: %s", json.dumps(contract_call))

    async def wait_for_transaction_receipt(
        self,
        tx_hash: str,
        timeout: float = 60,
    ) -> TxReceipt:
        """Poll for TRON transaction inclusion"""
        start = time.monotonic()
        while time.monotonic() - start < timeout:
            try:
                info = await self._client.get_transaction_info(tx_hash)
            except TransactionNotFound:
                info = None
            except (*TRON_TRANSPORT_ERRORS, *HTTP_STATUS_ERRORS) as e:
                logger.warning("Receipt lookup for %s failed: %s", tx_hash, e)
                info = None
            if info and info.get("blockNumber"):
                succeeded = info.get("receipt", {}).get("result") == "SUCCESS"
                return TxReceipt(
                    tx_hash=tx_hash,
                    block_number=int(info["blockNumber"]),
                    status="confirmed" if succeeded else "failed",
                )
            await asyncio.sleep(self._poll_interval)

        raise RpcUnavailable(f"Transaction {tx_hash} not confirmed within {timeout}s", tx_hash=tx_hash)
