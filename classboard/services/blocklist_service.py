"""
Blocklist lookups against the external moderation store.
"""
import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional, Set

from classboard.exceptions.base_exceptions import BlocklistUnavailableError, ClassboardException

logger = logging.getLogger(__name__)


class BlocklistProvider(ABC):
    """External owner of the set of banned identities."""

    @abstractmethod
    async def list_blocked(self) -> Set[str]:
        """Return every blocked identity."""


class BlocklistService:
    """
    Fetches the blocklist for membership checks.

    Every check fetches the full list unless ``cache_seconds`` is positive,
    in which case a fetched list is reused until it is that old.
    """

    def __init__(
        self,
        provider: BlocklistProvider,
        cache_seconds: float = 0,
        timeout: float = 10.0,
        clock: Callable[[], float] = time.monotonic
    ):
        self.provider = provider
        self.cache_seconds = cache_seconds
        self.timeout = timeout
        self.clock = clock
        self._cached: Optional[Set[str]] = None
        self._cached_at: float = 0.0

    def invalidate(self) -> None:
        self._cached = None

    async def fetch(self) -> Set[str]:
        """
        Get the current blocklist.

        Raises:
            BlocklistUnavailableError: if the provider fails or times out
        """
        if self._cached is not None and self.clock() - self._cached_at < self.cache_seconds:
            return self._cached

        try:
            blocked = await asyncio.wait_for(self.provider.list_blocked(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise BlocklistUnavailableError(
                f"Blocklist fetch timed out after {self.timeout}s"
            ) from e
        except ClassboardException as e:
            raise BlocklistUnavailableError(f"Blocklist fetch failed: {e}") from e

        blocked = set(blocked)
        if self.cache_seconds > 0:
            self._cached = blocked
            self._cached_at = self.clock()
        return blocked

    async def is_blocked(self, identity: str) -> bool:
        return identity in await self.fetch()
