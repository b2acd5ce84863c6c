"""
Address utility functions for TRON and EVM address conversion
"""

import logging

import base58
from eth_utils import is_checksum_address, to_checksum_address

from router_fleet.exceptions import InvalidAddressFormat

logger = logging.getLogger(__name__)

HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

# TRON mainnet address version byte
TRON_ADDRESS_PREFIX = 0x41


def strip_hex_prefix(value: str) -> str:
    return value[2:] if value[:2] in ("0x", "0X") else value


def is_hex(value: str) -> bool:
    return bool(value) and all(c in HEX_DIGITS for c in value)


def parse_address_bytes(value: str) -> bytes:
    """Parse a 20-byte address given as hex, with or without ``0x``.

    Raises:
        InvalidAddressFormat: If the value is not exactly 20 bytes of hex
    """
    if not isinstance(value, str):
        raise InvalidAddressFormat(value, "expected a string")
    body = strip_hex_prefix(value)
    if len(body) != 40 or not is_hex(body):
        raise InvalidAddressFormat(value, "expected 20 bytes of hex")
    return bytes.fromhex(body)


def checksum_from_bytes(raw: bytes) -> str:
    """Render 20 raw bytes as an EIP-55 checksummed address"""
    if len(raw) != 20:
        raise InvalidAddressFormat(raw.hex(), "expected 20 bytes")
    return to_checksum_address("0x" + raw.hex())


def tron_hex_to_base58check(hex_addr: str) -> str:
    """Convert a 42-char TRON hex address (41...) to Base58Check."""
    return base58.b58encode_check(bytes.fromhex(hex_addr)).decode()


def tron_base58check_to_bytes(tron_addr: str) -> bytes:
    """Decode a TRON Base58Check address to its 20-byte body.

    Raises:
        InvalidAddressFormat: On bad checksum, length or version byte
    """
    try:
        decoded = base58.b58decode_check(tron_addr)
    except ValueError as e:
        raise InvalidAddressFormat(tron_addr, f"bad base58check: {e}") from e
    # 1 byte version + 20 bytes address
    if len(decoded) != 21:
        raise InvalidAddressFormat(tron_addr, f"decoded to {len(decoded)} bytes")
    if decoded[0] != TRON_ADDRESS_PREFIX:
        raise InvalidAddressFormat(tron_addr, f"unexpected version byte 0x{decoded[0]:02x}")
    return decoded[1:]


def tron_address_to_bytes(tron_addr: str) -> bytes:
    """Accept any TRON address form and return the 20-byte body.

    Handles:
        - Base58Check (T...)
        - TRON hex (41 + 40 hex chars)
        - EVM hex (0x + 40 hex chars)
    """
    if not isinstance(tron_addr, str):
        raise InvalidAddressFormat(tron_addr, "expected a string")
    if tron_addr.startswith("41") and len(tron_addr) == 42 and is_hex(tron_addr):
        return bytes.fromhex(tron_addr[2:])
    if tron_addr[:2] in ("0x", "0X"):
        return parse_address_bytes(tron_addr)
    if tron_addr.startswith("T"):
        return tron_base58check_to_bytes(tron_addr)
    raise InvalidAddressFormat(tron_addr, "not a TRON address")


def parse_checksummed_address(value: str) -> bytes:
    """Like parse_address_bytes, but mixed-case input must be valid EIP-55.

    All-lowercase and all-uppercase hex carry no checksum and are accepted.
    """
    raw = parse_address_bytes(value)
    body = strip_hex_prefix(value)
    if body != body.lower() and body != body.upper():
        if not is_checksum_address("0x" + body):
            raise InvalidAddressFormat(value, "bad EIP-55 checksum")
    return raw
