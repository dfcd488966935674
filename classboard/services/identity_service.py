"""
Client identity resolution through an IP lookup service.
"""
import asyncio
import logging
import time
from typing import Callable, Optional

import aiohttp

from classboard.exceptions.base_exceptions import IdentityResolutionError
from classboard.services.local_state import LocalState, USER_IP, IP_EXPIRATION

logger = logging.getLogger(__name__)


class IdentityResolver:
    """
    Resolves the ClientIdentity for this session.

    The looked-up address is cached in local state with an expiry in epoch
    milliseconds. Lookup failures are not fatal: the previous cached value,
    or an empty identity, is returned instead.
    """

    def __init__(
        self,
        state: LocalState,
        lookup_url: str = "https://ipapi.co/json",
        ttl_seconds: int = 3600,
        timeout: float = 10.0,
        clock: Callable[[], float] = time.time
    ):
        self.state = state
        self.lookup_url = lookup_url
        self.ttl_seconds = ttl_seconds
        self.timeout = timeout
        self.clock = clock

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def cached_identity(self) -> Optional[str]:
        """Return the cached identity if it has not expired."""
        cached_ip = self.state.get_item(USER_IP)
        expiration = self.state.get_int(IP_EXPIRATION, default=0)
        if cached_ip and self._now_ms() < expiration:
            return cached_ip
        return None

    async def resolve(self) -> str:
        cached = self.cached_identity()
        if cached:
            return cached

        try:
            identity = await self.lookup()
        except IdentityResolutionError as e:
            fallback = self.state.get_item(USER_IP) or ""
            logger.warning(f"Identity lookup failed, using {'cached' if fallback else 'unresolved'} identity: {e}")
            return fallback

        try:
            self.state.set_item(USER_IP, identity)
            self.state.set_item(IP_EXPIRATION, self._now_ms() + self.ttl_seconds * 1000)
        except OSError as e:
            logger.warning(f"Could not save resolved identity to local state: {e}")
        logger.debug(f"Resolved client identity {identity}")
        return identity

    async def lookup(self) -> str:
        """Query the lookup service and return its ``ip`` field."""
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    self.lookup_url,
                    timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    if response.status != 200:
                        raise IdentityResolutionError(
                            f"IP lookup returned status {response.status}", self.lookup_url
                        )
                    data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise IdentityResolutionError(f"IP lookup failed: {e}", self.lookup_url) from e

        ip = data.get("ip") if isinstance(data, dict) else None
        if not ip:
            raise IdentityResolutionError("IP lookup response has no 'ip' field", self.lookup_url)
        return str(ip)
