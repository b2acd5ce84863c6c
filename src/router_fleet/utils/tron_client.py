"""
AsyncTron client construction for Tron adapters and signers
"""

import logging
import os
from typing import Any

from tronpy import AsyncTron
from tronpy.defaults import conf_for_name
from tronpy.providers.async_http import AsyncHTTPProvider

from router_fleet.exceptions import UnsupportedNetworkError

logger = logging.getLogger(__name__)

TRON_GRID_API_KEY_ENV = "TRON_GRID_API_KEY"


def create_async_tron_client(
    network: str,
    endpoint_uri: str | None = None,
    api_key: str | None = None,
) -> Any:
    """Create an AsyncTron client for a tronpy network.

    The TronGrid API key is ``api_key`` or, when omitted, ``TRON_GRID_API_KEY``.
    With neither a key nor an endpoint, tronpy's public defaults are used.

    Args:
        network: tronpy network name (mainnet/shasta/nile)
        endpoint_uri: Full node URL overriding the network default

    Raises:
        UnsupportedNetworkError: If tronpy does not know the network
    """
    conf = conf_for_name(network)
    if not conf:
        raise UnsupportedNetworkError(
            f"Unknown TRON network '{network}'. Expected one of: mainnet, nile, shasta."
        )

    api_key = api_key or os.getenv(TRON_GRID_API_KEY_ENV)
    if not api_key and not endpoint_uri:
        logger.warning(
            "%s is not set; TronGrid may rate-limit %s requests", TRON_GRID_API_KEY_ENV, network
        )
        return AsyncTron(network=network)

    endpoint_uri = endpoint_uri or conf["fullnode"]
    logger.info("AsyncTron client for %s at %s", network, endpoint_uri)
    provider = AsyncHTTPProvider(endpoint_uri=endpoint_uri, api_key=api_key)
    return AsyncTron(provider=provider, network=network)
