"""
Address codec module
"""

from router_fleet.address.codec import AddressCodec

__all__ = [
    "AddressCodec",
]
