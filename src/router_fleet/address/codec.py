"""
Address codec: conversion between the canonical address form and each
chain family's native form.

The canonical form is ``0x`` followed by 20 bytes, EIP-55 checksummed.
"""

from typing import Literal

from router_fleet.config import ChainFamily
from router_fleet.exceptions import InvalidAddressFormat
from router_fleet.utils.address import (
    TRON_ADDRESS_PREFIX,
    checksum_from_bytes,
    parse_address_bytes,
    parse_checksummed_address,
    tron_address_to_bytes,
    tron_hex_to_base58check,
)

TronFormat = Literal["base58", "hex"]


class AddressCodec:
    """Bidirectional address conversion for every supported chain family"""

    EVM_ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
    TRON_ZERO_ADDRESS = "T9yD14Nj9j7xAB4dbGeiX9h8unkKHxuWwb"

    def to_native(
        self,
        canonical: str,
        family: ChainFamily,
        fmt: TronFormat = "base58",
    ) -> str:
        """Convert a canonical address to the family's native form.

        Args:
            canonical: 20-byte address, optional ``0x`` marker
            family: Target chain family
            fmt: TRON output form, ``base58`` (T...) or ``hex`` (41...)

        Raises:
            InvalidAddressFormat: If the value is not exactly 20 bytes
        """
        raw = parse_address_bytes(canonical)
        if family == ChainFamily.TRON:
            hex_addr = f"{TRON_ADDRESS_PREFIX:02x}{raw.hex()}"
            if fmt == "hex":
                return hex_addr
            return tron_hex_to_base58check(hex_addr)
        if family in (ChainFamily.EVM, ChainFamily.ZKSYNC):
            return checksum_from_bytes(raw)
        raise InvalidAddressFormat(canonical, f"unsupported chain family {family}")

    def to_canonical(self, native: str, family: ChainFamily) -> str:
        """Convert a native address back to the canonical form.

        Raises:
            InvalidAddressFormat: On malformed checksum, prefix or length
        """
        if family == ChainFamily.TRON:
            return checksum_from_bytes(tron_address_to_bytes(native))
        if family in (ChainFamily.EVM, ChainFamily.ZKSYNC):
            return checksum_from_bytes(parse_checksummed_address(native))
        raise InvalidAddressFormat(native, f"unsupported chain family {family}")

    def is_valid(self, address: str, family: ChainFamily) -> bool:
        try:
            self.to_canonical(address, family)
        except InvalidAddressFormat:
            return False
        return True

    def normalize(self, address: str, family: ChainFamily) -> str:
        """Normalize any accepted spelling to the family's native form"""
        return self.to_native(self.to_canonical(address, family), family)

    def zero_address(self, family: ChainFamily) -> str:
        if family == ChainFamily.TRON:
            return self.TRON_ZERO_ADDRESS
        return self.EVM_ZERO_ADDRESS
