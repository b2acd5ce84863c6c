"""
Transport error classes raised by the web3 and tronpy HTTP providers
"""

import asyncio

import aiohttp
import httpx
from web3.exceptions import ProviderConnectionError

# 408 and 425 are timeouts, 429 is rate limiting, 5xx is node trouble
RETRYABLE_HTTP_STATUS = frozenset({408, 425, 429, 500, 502, 503, 504})

EVM_TRANSPORT_ERRORS = (
    ProviderConnectionError,
    aiohttp.ClientConnectionError,
    aiohttp.ClientPayloadError,
    asyncio.TimeoutError,
    OSError,
)
TRON_TRANSPORT_ERRORS = (httpx.TransportError, asyncio.TimeoutError, OSError)

# responses carrying an HTTP error status
HTTP_STATUS_ERRORS = (aiohttp.ClientResponseError, httpx.HTTPStatusError)


def http_status(error: BaseException) -> int | None:
    """Return the HTTP status carried by a provider error, if any"""
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    if isinstance(error, aiohttp.ClientResponseError):
        return error.status
    return None


def is_retryable_http_error(error: BaseException) -> bool:
    status = http_status(error)
    return status is not None and (status in RETRYABLE_HTTP_STATUS or status >= 500)
