"""
Quota stores for daily submission counters.

A store answers ``get(identity, kind, day)`` and ``increment(identity, kind,
day)``. A counter whose stored day differs from the requested day reads as
zero and is reset on the next increment.
"""
import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from classboard.exceptions.base_exceptions import PersistenceError
from classboard.models.enums import SubmissionKind
from classboard.repositories.quota_repository import QuotaRepository
from classboard.services.local_state import (
    LocalState,
    MESSAGE_COUNT_DATE,
    MESSAGE_COUNT,
    LAST_UPLOAD_DATE,
    UPLOADED_IMAGES_COUNT,
)

logger = logging.getLogger(__name__)


def format_day(day: date) -> str:
    """Render a day like the browser's ``Date.toDateString()`` ("Mon Oct 19 2026")."""
    return day.strftime("%a %b %d %Y")


class QuotaStore(ABC):
    """Storage capability for per-identity, per-kind, per-day counters."""

    @abstractmethod
    async def get(self, identity: str, kind: SubmissionKind, day: date) -> int:
        """Return the count for the day, zero if the stored day is different."""

    @abstractmethod
    async def increment(self, identity: str, kind: SubmissionKind, day: date) -> int:
        """Add one accepted submission for the day and return the new count."""


class InMemoryQuotaStore(QuotaStore):
    """Counters held in process memory."""

    def __init__(self):
        self._counters: Dict[Tuple[str, SubmissionKind], Tuple[date, int]] = {}

    async def get(self, identity: str, kind: SubmissionKind, day: date) -> int:
        stored_day, count = self._counters.get((identity, kind), (day, 0))
        if stored_day != day:
            self._counters[(identity, kind)] = (day, 0)
            return 0
        return count

    async def increment(self, identity: str, kind: SubmissionKind, day: date) -> int:
        count = await self.get(identity, kind, day) + 1
        self._counters[(identity, kind)] = (day, count)
        return count


class LocalStateQuotaStore(QuotaStore):
    """
    Counters kept in the session's local state under the browser-era keys.

    Local state belongs to one client session, so the identity argument is
    not part of the key.
    """

    KEYS = {
        SubmissionKind.MESSAGE: (MESSAGE_COUNT_DATE, MESSAGE_COUNT),
        SubmissionKind.UPLOAD: (LAST_UPLOAD_DATE, UPLOADED_IMAGES_COUNT),
    }

    def __init__(self, state: LocalState):
        self.state = state

    def _read_count(self, kind: SubmissionKind, day: date) -> int:
        date_key, count_key = self.KEYS[kind]
        today = format_day(day)
        if self.state.get_item(date_key) != today:
            self.state.set_item(date_key, today)
            self.state.set_item(count_key, 0)
            return 0
        return self.state.get_int(count_key)

    async def get(self, identity: str, kind: SubmissionKind, day: date) -> int:
        try:
            return self._read_count(kind, day)
        except OSError as e:
            raise PersistenceError(f"Failed to reset local quota counter: {e}", "quota_read", "local_state") from e

    async def increment(self, identity: str, kind: SubmissionKind, day: date) -> int:
        _, count_key = self.KEYS[kind]
        try:
            count = self._read_count(kind, day) + 1
            self.state.set_item(count_key, count)
        except OSError as e:
            raise PersistenceError(f"Failed to save local quota counter: {e}", "quota_write", "local_state") from e
        return count


class DatabaseQuotaStore(QuotaStore):
    """Counters in the shared database, consistent across sessions."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def get(self, identity: str, kind: SubmissionKind, day: date) -> int:
        try:
            async with self.session_factory() as session:
                return await QuotaRepository(session).get_count(identity, kind.value, day)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read quota counter: {e}", "quota_read", "quota_counters") from e

    async def increment(self, identity: str, kind: SubmissionKind, day: date) -> int:
        try:
            async with self.session_factory() as session:
                return await QuotaRepository(session).increment(identity, kind.value, day)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to update quota counter: {e}", "quota_write", "quota_counters") from e
