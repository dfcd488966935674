"""
Board session: the UI-facing entry point for chat, uploads and the gallery.
"""
import logging
from datetime import datetime
from typing import List, Optional, Union

from classboard.config.logging_config import LogContext
from classboard.config.settings import Settings, settings as default_settings
from classboard.exceptions.base_exceptions import ConfigurationError
from classboard.models.enums import RejectionReason, SubmissionKind
from classboard.services.blocklist_service import BlocklistService
from classboard.services.identity_service import IdentityResolver
from classboard.services.local_state import LocalState
from classboard.services.persistence import (
    ChatMessageRecord,
    DatabaseBackend,
    GalleryItem,
    PersistenceBackend,
)
from classboard.services.quota_store import (
    DatabaseQuotaStore,
    InMemoryQuotaStore,
    LocalStateQuotaStore,
    QuotaStore,
)
from classboard.services.submission_gate import (
    BlocklistFailurePolicy,
    GateResult,
    GateStatus,
    SubmissionGate,
    UploadPayload,
)

logger = logging.getLogger(__name__)


class BoardSession:
    """
    One client's session on the board.

    Only one submission may be in flight at a time; a second one made while
    the first is pending is rejected instead of queued.
    """

    def __init__(
        self,
        gate: SubmissionGate,
        identity_resolver: IdentityResolver,
        persistence: PersistenceBackend,
        gallery_limit: int = 100,
        request_bucket: Optional[str] = None
    ):
        self.gate = gate
        self.identity_resolver = identity_resolver
        self.persistence = persistence
        self.gallery_limit = gallery_limit
        self.request_bucket = request_bucket
        self._pending = False

    @property
    def pending(self) -> bool:
        return self._pending

    async def _submit(self, payload: Union[str, UploadPayload], kind: SubmissionKind) -> GateResult:
        if self._pending:
            logger.info(f"Ignoring {kind.value} submission while another is pending")
            return GateResult(
                status=GateStatus.REJECTED,
                kind=kind,
                current_count=0,
                daily_limit=self.gate.daily_limits[kind],
                reason=RejectionReason.SUBMISSION_IN_PROGRESS,
                message="A submission is already in progress"
            )

        self._pending = True
        try:
            identity = await self.identity_resolver.resolve()
            with LogContext(identity=identity, kind=kind.value):
                return await self.gate.evaluate(identity, payload, kind)
        finally:
            self._pending = False

    async def send_message(self, text: str) -> GateResult:
        return await self._submit(text, SubmissionKind.MESSAGE)

    async def upload_image(self, data: bytes, filename: str = "",
                           content_type: Optional[str] = None) -> GateResult:
        return await self._submit(UploadPayload(data, filename, content_type), SubmissionKind.UPLOAD)

    async def remaining(self, kind: Union[SubmissionKind, str]) -> int:
        identity = await self.identity_resolver.resolve()
        return await self.gate.remaining(identity, kind)

    async def gallery(self, limit: Optional[int] = None, newest_first: bool = True) -> List[GalleryItem]:
        """Images in the shared bucket with their public URLs."""
        return await self.persistence.list_uploads(limit or self.gallery_limit, newest_first)

    async def request_history(self, limit: Optional[int] = None) -> List[GalleryItem]:
        """
        Images of the request bucket, fetched oldest first and shown most recent first.

        Without a request bucket the upload bucket is listed.
        """
        items = await self.persistence.list_uploads(
            limit or self.gallery_limit, newest_first=False, bucket=self.request_bucket
        )
        return list(reversed(items))

    async def public_url(self, key: str) -> str:
        return await self.persistence.public_url(key)

    async def fetch_messages(self) -> List[ChatMessageRecord]:
        return await self.persistence.list_messages()

    async def messages_since(self, timestamp: datetime) -> List[ChatMessageRecord]:
        """Messages newer than the given timestamp, for polling the chat."""
        return await self.persistence.list_messages(since=timestamp)

    async def close(self) -> None:
        await self.persistence.close()


def _create_quota_store(config: Settings, state: LocalState) -> QuotaStore:
    if config.QUOTA_STORE == "database":
        from classboard.database.base import get_session_factory

        return DatabaseQuotaStore(get_session_factory())
    if config.QUOTA_STORE == "memory":
        return InMemoryQuotaStore()
    if config.QUOTA_STORE == "local":
        return LocalStateQuotaStore(state)
    raise ConfigurationError(f"Unsupported quota store: {config.QUOTA_STORE}", "QUOTA_STORE")


def create_board_session(config: Settings = default_settings,
                         state: Optional[LocalState] = None) -> BoardSession:
    """
    Wire a BoardSession from settings.

    The "database" backend needs ``init_database()`` to have run first.
    """
    state = state if state is not None else LocalState(config.LOCAL_STATE_PATH)

    if config.BACKEND == "supabase":
        if not config.SUPABASE_URL or not config.SUPABASE_KEY:
            raise ConfigurationError("Supabase URL and key are required", "SUPABASE_URL")
        from classboard.services.supabase_backend import SupabaseBackend

        backend = SupabaseBackend(
            url=config.SUPABASE_URL,
            api_key=config.SUPABASE_KEY,
            messages_table=config.MESSAGES_TABLE,
            blocklist_table=config.BLOCKLIST_TABLE,
            bucket=config.UPLOAD_BUCKET,
            timeout=config.EXTERNAL_CALL_TIMEOUT
        )
    elif config.BACKEND == "database":
        from classboard.database.base import get_session_factory

        backend = DatabaseBackend(get_session_factory(), config.UPLOAD_PUBLIC_BASE_URL, config.UPLOAD_BUCKET)
    else:
        raise ConfigurationError(f"Unsupported backend: {config.BACKEND}", "BACKEND")

    try:
        policy = BlocklistFailurePolicy(config.BLOCKLIST_FAILURE_POLICY)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid blocklist failure policy: {config.BLOCKLIST_FAILURE_POLICY}",
            "BLOCKLIST_FAILURE_POLICY"
        ) from e

    gate = SubmissionGate(
        blocklist=BlocklistService(
            backend,
            cache_seconds=config.BLOCKLIST_CACHE_SECONDS,
            timeout=config.EXTERNAL_CALL_TIMEOUT
        ),
        quota_store=_create_quota_store(config, state),
        persistence=backend,
        daily_limits={
            SubmissionKind.MESSAGE: config.DAILY_MESSAGE_LIMIT,
            SubmissionKind.UPLOAD: config.DAILY_UPLOAD_LIMIT,
        },
        max_message_length=config.MAX_MESSAGE_LENGTH,
        max_upload_bytes=config.MAX_UPLOAD_BYTES,
        blocklist_failure_policy=policy,
        write_timeout=config.EXTERNAL_CALL_TIMEOUT,
        sender_image=config.SENDER_IMAGE
    )

    resolver = IdentityResolver(
        state,
        lookup_url=config.IP_LOOKUP_URL,
        ttl_seconds=config.IDENTITY_TTL_SECONDS,
        timeout=config.EXTERNAL_CALL_TIMEOUT
    )

    return BoardSession(
        gate, resolver, backend,
        gallery_limit=config.GALLERY_LIMIT,
        request_bucket=config.REQUEST_BUCKET
    )
