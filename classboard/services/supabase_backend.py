"""
Hosted backend on a Supabase project through the async Supabase client.
"""
import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, List, Optional, Set

import httpx
from postgrest.exceptions import APIError
from storage3.utils import StorageException
from supabase import AsyncClient, create_async_client

from classboard.exceptions.base_exceptions import PersistenceError
from classboard.services.blocklist_service import BlocklistProvider
from classboard.services.persistence import (
    ChatMessageRecord,
    GalleryItem,
    PersistenceBackend,
    UploadRecord,
)

logger = logging.getLogger(__name__)

SDK_ERRORS = (APIError, StorageException, httpx.HTTPError)


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class SupabaseBackend(PersistenceBackend, BlocklistProvider):
    """
    Chat table, blocklist table and image buckets of a Supabase project.

    Rows use the column names of the hosted schema: ``message``, ``sender``,
    ``timestamp`` and ``userIp`` for chats, ``ipAddress`` for the blocklist.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        messages_table: str = "chats",
        blocklist_table: str = "blacklist_ips",
        bucket: str = "images",
        timeout: float = 10.0,
        client: Optional[AsyncClient] = None
    ):
        self.url = url
        self.api_key = api_key
        self.messages_table = messages_table
        self.blocklist_table = blocklist_table
        self.bucket = bucket
        self.timeout = timeout
        self._client = client
        self._client_lock = asyncio.Lock()

    async def get_client(self) -> AsyncClient:
        """Create the async client on first use."""
        if self._client is not None:
            return self._client

        async with self._client_lock:
            # Another coroutine may have created it while we waited
            if self._client is None:
                self._client = await create_async_client(self.url, self.api_key)
        return self._client

    async def _run(self, call: Awaitable[Any], operation: str, resource: str) -> Any:
        """Await an SDK call under the timeout, mapping its failures to PersistenceError."""
        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise PersistenceError(
                f"Supabase {operation} timed out after {self.timeout}s", operation, resource
            ) from e
        except SDK_ERRORS as e:
            raise PersistenceError(f"Supabase {operation} failed: {e}", operation, resource) from e

    async def write_message(self, record: ChatMessageRecord) -> None:
        client = await self.get_client()
        await self._run(
            client.table(self.messages_table).insert([{
                "message": record.message,
                "sender": record.sender,
                "timestamp": record.timestamp.isoformat(),
                "userIp": record.user_ip,
            }]).execute(),
            "write_message",
            self.messages_table
        )

    async def write_upload(self, record: UploadRecord) -> None:
        client = await self.get_client()
        await self._run(
            client.storage.from_(self.bucket).upload(
                record.key,
                record.data,
                {
                    "content-type": record.content_type or "application/octet-stream",
                    "upsert": "false",
                }
            ),
            "write_upload",
            self.bucket
        )
        logger.info(f"Uploaded {record.key} ({record.size} bytes) to bucket {self.bucket}")

    async def list_uploads(self, limit: int = 100, newest_first: bool = True,
                           bucket: Optional[str] = None) -> List[GalleryItem]:
        bucket = bucket or self.bucket
        client = await self.get_client()
        files = await self._run(
            client.storage.from_(bucket).list("", {
                "limit": limit,
                "offset": 0,
                "sortBy": {"column": "created_at", "order": "desc" if newest_first else "asc"},
            }),
            "list_uploads",
            bucket
        ) or []

        items = []
        for item in files:
            if not item.get("name"):
                continue
            items.append(GalleryItem(
                key=item["name"],
                url=await self.public_url(item["name"], bucket),
                created_at=_parse_timestamp(item.get("created_at") or item.get("updated_at"))
            ))
        return items

    async def public_url(self, key: str, bucket: Optional[str] = None) -> str:
        bucket = bucket or self.bucket
        client = await self.get_client()
        return await self._run(
            client.storage.from_(bucket).get_public_url(key),
            "public_url",
            bucket
        )

    async def list_messages(self, since: Optional[datetime] = None) -> List[ChatMessageRecord]:
        client = await self.get_client()
        query = client.table(self.messages_table).select("*")
        if since is not None:
            query = query.gt("timestamp", since.isoformat())
        response = await self._run(
            query.order("timestamp").execute(),
            "list_messages",
            self.messages_table
        )

        return [
            ChatMessageRecord(
                message=row.get("message", ""),
                sender=row.get("sender") or {},
                timestamp=_parse_timestamp(row.get("timestamp")),
                user_ip=row.get("userIp") or ""
            )
            for row in response.data or []
        ]

    async def list_blocked(self) -> Set[str]:
        client = await self.get_client()
        response = await self._run(
            client.table(self.blocklist_table).select("ipAddress").execute(),
            "list_blocked",
            self.blocklist_table
        )
        return {row["ipAddress"] for row in response.data or [] if row.get("ipAddress")}
