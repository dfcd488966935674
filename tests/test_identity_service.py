"""
Unit tests for IdentityResolver.
"""
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from classboard.exceptions.base_exceptions import IdentityResolutionError
from classboard.services.identity_service import IdentityResolver
from classboard.services.local_state import LocalState

NOW = 1_800_000_000.0
NOW_MS = int(NOW * 1000)
HOUR_MS = 3600 * 1000


class FakeResponse:
    def __init__(self, status=200, payload=None, error=None):
        self.status = status
        self.payload = payload
        self.error = error

    async def json(self, content_type=None):
        if self.error:
            raise self.error
        return self.payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requested = []

    def get(self, url, timeout=None):
        self.requested.append(url)
        if self.error:
            raise self.error
        return self.response

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


@pytest.fixture
def state():
    return LocalState()


@pytest.fixture
def resolver(state):
    return IdentityResolver(state, lookup_url="https://ip.example/json", clock=lambda: NOW)


class TestResolve:
    """Caching and fallback behaviour."""

    @pytest.mark.asyncio
    async def test_uses_cached_identity_before_expiry(self, resolver, state):
        state.set_item("userIp", "1.2.3.4")
        state.set_item("ipExpiration", NOW_MS + 1000)
        resolver.lookup = AsyncMock()

        assert await resolver.resolve() == "1.2.3.4"
        resolver.lookup.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_looks_up_and_caches_for_an_hour(self, resolver, state):
        resolver.lookup = AsyncMock(return_value="5.6.7.8")

        assert await resolver.resolve() == "5.6.7.8"
        assert state.get_item("userIp") == "5.6.7.8"
        assert state.get_int("ipExpiration") == NOW_MS + HOUR_MS

    @pytest.mark.asyncio
    async def test_expired_cache_is_refreshed(self, resolver, state):
        state.set_item("userIp", "1.2.3.4")
        state.set_item("ipExpiration", NOW_MS)
        resolver.lookup = AsyncMock(return_value="5.6.7.8")

        assert await resolver.resolve() == "5.6.7.8"
        resolver.lookup.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failure_falls_back_to_previous_identity(self, resolver, state):
        state.set_item("userIp", "1.2.3.4")
        state.set_item("ipExpiration", NOW_MS - 1)
        resolver.lookup = AsyncMock(side_effect=IdentityResolutionError("offline"))

        assert await resolver.resolve() == "1.2.3.4"
        assert state.get_int("ipExpiration") == NOW_MS - 1

    @pytest.mark.asyncio
    async def test_failure_without_cache_gives_unresolved_identity(self, resolver):
        resolver.lookup = AsyncMock(side_effect=IdentityResolutionError("offline"))

        assert await resolver.resolve() == ""

    @pytest.mark.asyncio
    async def test_unwritable_state_still_returns_identity(self, tmp_path):
        not_a_dir = tmp_path / "afile"
        not_a_dir.write_text("")
        resolver = IdentityResolver(
            LocalState(not_a_dir / "local.json"),
            lookup_url="https://ip.example/json",
            clock=lambda: NOW
        )
        resolver.lookup = AsyncMock(return_value="5.6.7.8")

        assert await resolver.resolve() == "5.6.7.8"


class TestLookup:
    """HTTP lookup against the IP service."""

    @pytest.mark.asyncio
    async def test_takes_ip_field_not_network(self, resolver):
        session = FakeSession(FakeResponse(payload={"ip": "9.9.9.9", "network": "9.9.9.0/24"}))

        with patch("classboard.services.identity_service.aiohttp.ClientSession", return_value=session):
            assert await resolver.lookup() == "9.9.9.9"

        assert session.requested == ["https://ip.example/json"]

    @pytest.mark.asyncio
    async def test_bad_status_raises(self, resolver):
        session = FakeSession(FakeResponse(status=429))

        with patch("classboard.services.identity_service.aiohttp.ClientSession", return_value=session):
            with pytest.raises(IdentityResolutionError):
                await resolver.lookup()

    @pytest.mark.asyncio
    async def test_missing_ip_raises(self, resolver):
        session = FakeSession(FakeResponse(payload={"network": "9.9.9.0/24"}))

        with patch("classboard.services.identity_service.aiohttp.ClientSession", return_value=session):
            with pytest.raises(IdentityResolutionError):
                await resolver.lookup()

    @pytest.mark.asyncio
    async def test_connection_error_raises(self, resolver):
        session = FakeSession(error=aiohttp.ClientConnectionError("refused"))

        with patch("classboard.services.identity_service.aiohttp.ClientSession", return_value=session):
            with pytest.raises(IdentityResolutionError):
                await resolver.lookup()

    @pytest.mark.asyncio
    async def test_resolve_end_to_end(self, resolver, state):
        session = FakeSession(FakeResponse(payload={"ip": "9.9.9.9"}))

        with patch("classboard.services.identity_service.aiohttp.ClientSession", return_value=session):
            assert await resolver.resolve() == "9.9.9.9"
            assert await resolver.resolve() == "9.9.9.9"

        assert len(session.requested) == 1
