"""
Persistence backends for chat messages and uploaded images.

The gate writes through the ``PersistenceBackend`` interface. ``DatabaseBackend``
keeps everything in the SQLAlchemy database and also serves the blocklist;
the hosted backend lives in ``supabase_backend``.
"""
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from classboard.exceptions.base_exceptions import PersistenceError
from classboard.repositories.blocklist_repository import BlocklistRepository
from classboard.repositories.message_repository import MessageRepository
from classboard.repositories.upload_repository import UploadRepository
from classboard.services.blocklist_service import BlocklistProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatMessageRecord:
    """An accepted chat message."""
    message: str
    sender: Dict[str, Any]
    timestamp: datetime
    user_ip: str = ""


@dataclass(frozen=True)
class UploadRecord:
    """An accepted image upload."""
    key: str
    data: bytes = field(repr=False)
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class GalleryItem:
    """An entry of the shared image bucket."""
    key: str
    url: str
    created_at: Optional[datetime] = None


def generate_storage_key(filename: Optional[str] = None) -> str:
    """Build a fresh ``<uuid4>.<ext>`` key, keeping the file's extension."""
    suffix = PurePosixPath(filename or "").suffix.lower()
    return f"{uuid.uuid4()}{suffix}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class PersistenceBackend(ABC):
    """Write and read side of the external store."""

    @abstractmethod
    async def write_message(self, record: ChatMessageRecord) -> None:
        """Store a chat message. Raises PersistenceError on failure."""

    @abstractmethod
    async def write_upload(self, record: UploadRecord) -> None:
        """Store an image under ``record.key``. Raises PersistenceError on failure."""

    @abstractmethod
    async def list_uploads(self, limit: int = 100, newest_first: bool = True,
                           bucket: Optional[str] = None) -> List[GalleryItem]:
        """List images ordered by creation time; ``bucket`` defaults to the upload bucket."""

    @abstractmethod
    async def public_url(self, key: str, bucket: Optional[str] = None) -> str:
        """Public URL for a stored image."""

    @abstractmethod
    async def list_messages(self, since: Optional[datetime] = None) -> List[ChatMessageRecord]:
        """List chat messages in timestamp order."""

    async def close(self) -> None:
        """Release any held connections."""


class DatabaseBackend(PersistenceBackend, BlocklistProvider):
    """Messages, uploads and the blocklist kept in the SQLAlchemy database."""

    def __init__(self, session_factory: async_sessionmaker, public_base_url: str = "/uploads",
                 bucket: str = "images"):
        self.session_factory = session_factory
        self.public_base_url = public_base_url.rstrip("/")
        self.bucket = bucket

    async def write_message(self, record: ChatMessageRecord) -> None:
        try:
            async with self.session_factory() as session:
                await MessageRepository(session).create_message(
                    message=record.message,
                    sender=record.sender,
                    timestamp=_naive_utc(record.timestamp),
                    user_ip=record.user_ip
                )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to store message: {e}", "write_message", "chats") from e

    async def write_upload(self, record: UploadRecord) -> None:
        try:
            async with self.session_factory() as session:
                await UploadRepository(session).create_upload(
                    key=record.key,
                    data=record.data,
                    content_type=record.content_type,
                    bucket=self.bucket
                )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to store upload {record.key}: {e}", "write_upload", "uploads") from e
        logger.info(f"Stored upload {record.key} ({record.size} bytes)")

    async def list_uploads(self, limit: int = 100, newest_first: bool = True,
                           bucket: Optional[str] = None) -> List[GalleryItem]:
        try:
            async with self.session_factory() as session:
                uploads = await UploadRepository(session).list_uploads(
                    limit, newest_first, bucket=bucket or self.bucket
                )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to list uploads: {e}", "list_uploads", "uploads") from e

        return [
            GalleryItem(key=upload.key, url=await self.public_url(upload.key), created_at=upload.created_at)
            for upload in uploads
        ]

    async def public_url(self, key: str, bucket: Optional[str] = None) -> str:
        return f"{self.public_base_url}/{key}"

    async def list_messages(self, since: Optional[datetime] = None) -> List[ChatMessageRecord]:
        try:
            async with self.session_factory() as session:
                messages = await MessageRepository(session).list_messages(
                    since=_naive_utc(since) if since else None
                )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to list messages: {e}", "list_messages", "chats") from e

        return [
            ChatMessageRecord(
                message=message.message,
                sender=message.sender or {},
                timestamp=message.timestamp.replace(tzinfo=timezone.utc),
                user_ip=message.user_ip or ""
            )
            for message in messages
        ]

    async def list_blocked(self) -> Set[str]:
        try:
            async with self.session_factory() as session:
                return await BlocklistRepository(session).list_identities()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to fetch blocklist: {e}", "list_blocked", "blocked_identities") from e

    async def block(self, identity: str, reason: Optional[str] = None) -> None:
        """Ban an identity."""
        try:
            async with self.session_factory() as session:
                await BlocklistRepository(session).block(identity, reason)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to block {identity}: {e}", "block", "blocked_identities") from e
        logger.info(f"Blocked identity {identity}")

    async def unblock(self, identity: str) -> bool:
        """Lift a ban; returns False if the identity was not blocked."""
        try:
            async with self.session_factory() as session:
                removed = await BlocklistRepository(session).unblock(identity)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to unblock {identity}: {e}", "unblock", "blocked_identities") from e
        if removed:
            logger.info(f"Unblocked identity {identity}")
        return removed
