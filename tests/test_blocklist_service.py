"""
Unit tests for BlocklistService.
"""
import asyncio
from unittest.mock import AsyncMock

import pytest

from classboard.exceptions.base_exceptions import BlocklistUnavailableError, PersistenceError
from classboard.services.blocklist_service import BlocklistService


class Clock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


@pytest.fixture
def provider():
    provider = AsyncMock()
    provider.list_blocked.return_value = {"6.6.6.6"}
    return provider


class TestBlocklistService:
    """Test cases for BlocklistService."""

    @pytest.mark.asyncio
    async def test_membership(self, provider):
        service = BlocklistService(provider)

        assert await service.is_blocked("6.6.6.6") is True
        assert await service.is_blocked("1.2.3.4") is False

    @pytest.mark.asyncio
    async def test_no_cache_by_default(self, provider):
        service = BlocklistService(provider)

        await service.fetch()
        await service.fetch()

        assert provider.list_blocked.await_count == 2

    @pytest.mark.asyncio
    async def test_short_lived_cache(self, provider):
        clock = Clock()
        service = BlocklistService(provider, cache_seconds=30, clock=clock)

        await service.fetch()
        clock.now += 10
        await service.fetch()
        assert provider.list_blocked.await_count == 1

        clock.now += 30
        await service.fetch()
        assert provider.list_blocked.await_count == 2

    @pytest.mark.asyncio
    async def test_invalidate(self, provider):
        service = BlocklistService(provider, cache_seconds=30, clock=Clock())
        await service.fetch()

        service.invalidate()
        await service.fetch()

        assert provider.list_blocked.await_count == 2

    @pytest.mark.asyncio
    async def test_provider_failure_raises_unavailable(self, provider):
        provider.list_blocked.side_effect = PersistenceError("down", "list_blocked")
        service = BlocklistService(provider)

        with pytest.raises(BlocklistUnavailableError):
            await service.is_blocked("6.6.6.6")

    @pytest.mark.asyncio
    async def test_timeout_raises_unavailable(self, provider):
        async def hang():
            await asyncio.sleep(1)

        provider.list_blocked.side_effect = hang
        service = BlocklistService(provider, timeout=0.01)

        with pytest.raises(BlocklistUnavailableError):
            await service.fetch()
