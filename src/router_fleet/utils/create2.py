"""
Salted-create address derivation for EVM, TVM and zkSync.

All functions here are pure: they never touch the network, so a deployment
address can be computed and checked before anything is submitted.
"""

import hashlib

from eth_utils import keccak

from router_fleet.exceptions import InvalidConfig
from router_fleet.utils.address import (
    TRON_ADDRESS_PREFIX,
    checksum_from_bytes,
    is_hex,
    parse_address_bytes,
    strip_hex_prefix,
)

EVM_CREATE2_PREFIX = 0xFF
# TVM replaces the 0xff marker with the address version byte
TVM_CREATE2_PREFIX = TRON_ADDRESS_PREFIX

ZKSYNC_CREATE2_PREFIX = keccak(text="zksyncCreate2")
ZKSYNC_BYTECODE_VERSION = 1


def hash_salt(salt: str | bytes) -> bytes:
    """Turn an operator salt into the 32-byte value passed on-chain.

    A 32-byte hex value (``0x`` + 64 hex chars) is used as-is; any other
    string is hashed as ``keccak256(utf8(salt))``.

    Raises:
        InvalidConfig: If the salt is empty or a wrong-sized bytes value
    """
    if isinstance(salt, bytes):
        if len(salt) != 32:
            raise InvalidConfig(f"salt must be 32 bytes, got {len(salt)}")
        return salt
    if not salt:
        raise InvalidConfig("deploy salt must not be empty")
    body = strip_hex_prefix(salt)
    if salt[:2] in ("0x", "0X") and len(body) == 64 and is_hex(body):
        return bytes.fromhex(body)
    return keccak(text=salt)


def to_bytes(value: str | bytes) -> bytes:
    if isinstance(value, bytes):
        return value
    return bytes.fromhex(strip_hex_prefix(value))


def build_init_code(bytecode: str | bytes, encoded_args: str | bytes = b"") -> bytes:
    """Creation bytecode followed by the ABI-encoded constructor arguments"""
    return to_bytes(bytecode) + to_bytes(encoded_args)


def compute_create2_address(
    deployer: str,
    salt: bytes,
    init_code: bytes,
    prefix: int = EVM_CREATE2_PREFIX,
) -> str:
    """
    Compute a CREATE2 address.

    Formula: keccak256(prefix ++ deployer ++ salt ++ keccak256(init_code))[12:]

    Args:
        deployer: 20-byte address of the creating contract (hex)
        salt: 32-byte salt
        init_code: Creation bytecode including constructor arguments
        prefix: 0xff on EVM chains, 0x41 on TVM

    Returns:
        Canonical checksummed address
    """
    if len(salt) != 32:
        raise InvalidConfig(f"salt must be 32 bytes, got {len(salt)}")
    preimage = bytes([prefix]) + parse_address_bytes(deployer) + salt + keccak(init_code)
    return checksum_from_bytes(keccak(preimage)[12:])


def hash_zksync_bytecode(bytecode: bytes) -> bytes:
    """
    zkSync versioned bytecode hash.

    Layout: version (1 byte) ++ 0x00 ++ length in 32-byte words (2 bytes, big
    endian) ++ sha256(bytecode)[4:]

    Raises:
        InvalidConfig: If the bytecode is not a valid zkEVM bytecode
    """
    if len(bytecode) % 32 != 0:
        raise InvalidConfig("zkSync bytecode length must be a multiple of 32")
    words = len(bytecode) // 32
    if words >= 2**16:
        raise InvalidConfig("zkSync bytecode is too long")
    if words % 2 == 0:
        raise InvalidConfig("zkSync bytecode must have an odd number of words")
    digest = hashlib.sha256(bytecode).digest()
    return bytes([ZKSYNC_BYTECODE_VERSION, 0]) + words.to_bytes(2, "big") + digest[4:]


def compute_zksync_create2_address(
    sender: str,
    salt: bytes,
    bytecode_hash: bytes,
    constructor_input: bytes = b"",
) -> str:
    """
    Compute the address assigned by zkSync's ContractDeployer.create2.

    Formula: keccak256(keccak256("zksyncCreate2") ++ pad32(sender) ++ salt
    ++ bytecodeHash ++ keccak256(input))[12:]
    """
    if len(salt) != 32:
        raise InvalidConfig(f"salt must be 32 bytes, got {len(salt)}")
    preimage = (
        ZKSYNC_CREATE2_PREFIX
        + parse_address_bytes(sender).rjust(32, b"\x00")
        + salt
        + bytecode_hash
        + keccak(constructor_input)
    )
    return checksum_from_bytes(keccak(preimage)[12:])
