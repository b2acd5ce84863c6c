"""
Tests for bounded exponential backoff
"""

from unittest.mock import AsyncMock, patch

import pytest

from router_fleet.exceptions import ContractNotFound, RpcUnavailable
from router_fleet.utils.retry import with_backoff


@pytest.mark.anyio
async def test_returns_after_transient_failures():
    operation = AsyncMock(side_effect=[RpcUnavailable("down"), RpcUnavailable("down"), "ok"])
    with patch("router_fleet.utils.retry.asyncio.sleep", new=AsyncMock()) as sleep:
        result = await with_backoff(operation, attempts=3, base_delay=1.0)

    assert result == "ok"
    assert operation.await_count == 3
    assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]


@pytest.mark.anyio
async def test_exhausted_attempts_reraise():
    operation = AsyncMock(side_effect=RpcUnavailable("down"))
    with patch("router_fleet.utils.retry.asyncio.sleep", new=AsyncMock()):
        with pytest.raises(RpcUnavailable):
            await with_backoff(operation, attempts=3)
    assert operation.await_count == 3


@pytest.mark.anyio
async def test_fatal_errors_are_not_retried():
    operation = AsyncMock(side_effect=ContractNotFound("0x" + "00" * 20))
    with pytest.raises(ContractNotFound):
        await with_backoff(operation, attempts=3, base_delay=0)
    assert operation.await_count == 1


@pytest.mark.anyio
async def test_rejects_zero_attempts():
    with pytest.raises(ValueError):
        await with_backoff(AsyncMock(), attempts=0)
