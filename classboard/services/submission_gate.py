"""
Submission gate guarding chat messages and image uploads.

Every submission passes, in order, a blocklist check, the daily quota check
and payload validation before it is written. The quota counter moves only
after the write is confirmed.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Dict, Optional, Union

from classboard.exceptions.base_exceptions import (
    BlocklistUnavailableError,
    PersistenceError,
)
from classboard.models.enums import RejectionReason, SubmissionKind
from classboard.services.blocklist_service import BlocklistService
from classboard.services.persistence import (
    ChatMessageRecord,
    PersistenceBackend,
    UploadRecord,
    generate_storage_key,
    utc_now,
)
from classboard.services.quota_store import QuotaStore

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


class GateStatus(Enum):
    """Gate decision."""
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class BlocklistFailurePolicy(Enum):
    """What to do when the blocklist cannot be verified."""
    FAIL_OPEN = "open"
    FAIL_CLOSED = "closed"


@dataclass(frozen=True)
class UploadPayload:
    """Image bytes as selected by the user."""
    data: bytes
    filename: str = ""
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class GateResult:
    """Result of evaluating a submission."""
    status: GateStatus
    kind: SubmissionKind
    current_count: int
    daily_limit: int
    reason: Optional[RejectionReason] = None
    record: Optional[Union[ChatMessageRecord, UploadRecord]] = None
    message: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.status == GateStatus.ACCEPTED

    @property
    def remaining(self) -> int:
        return max(0, self.daily_limit - self.current_count)


class SubmissionGate:
    """
    Decides whether a submission from a client identity may be written.

    Quota state comes from the injected QuotaStore; check-then-increment is
    not atomic, so two concurrent submissions from one identity can both
    pass the quota check.
    """

    DEFAULT_DAILY_LIMITS = {
        SubmissionKind.MESSAGE: 20,
        SubmissionKind.UPLOAD: 20,
    }

    def __init__(
        self,
        blocklist: BlocklistService,
        quota_store: QuotaStore,
        persistence: PersistenceBackend,
        daily_limits: Optional[Dict[SubmissionKind, int]] = None,
        max_message_length: int = 60,
        max_upload_bytes: int = MAX_UPLOAD_BYTES,
        blocklist_failure_policy: BlocklistFailurePolicy = BlocklistFailurePolicy.FAIL_CLOSED,
        write_timeout: float = 10.0,
        sender_image: str = "/AnonimUser.png",
        today: Callable[[], date] = date.today
    ):
        self.blocklist = blocklist
        self.quota_store = quota_store
        self.persistence = persistence
        self.daily_limits = dict(self.DEFAULT_DAILY_LIMITS)
        if daily_limits:
            self.daily_limits.update(daily_limits)
        self.max_message_length = max_message_length
        self.max_upload_bytes = max_upload_bytes
        self.blocklist_failure_policy = blocklist_failure_policy
        self.write_timeout = write_timeout
        self.sender_image = sender_image
        self.today = today

    def _reject(self, kind: SubmissionKind, reason: RejectionReason, count: int,
                message: str) -> GateResult:
        logger.info(f"Rejected {kind.value} submission: {reason.value}")
        return GateResult(
            status=GateStatus.REJECTED,
            kind=kind,
            current_count=count,
            daily_limit=self.daily_limits[kind],
            reason=reason,
            message=message
        )

    async def evaluate(
        self,
        identity: str,
        payload: Union[str, UploadPayload],
        kind: Union[SubmissionKind, str]
    ) -> GateResult:
        """
        Evaluate a submission and write it when every check passes.

        Args:
            identity: Client identity, possibly empty when unresolved
            payload: Message text for MESSAGE, UploadPayload for UPLOAD
            kind: Submission kind selecting the limits and validation

        Returns:
            GateResult, accepted with the written record or rejected with a reason
        """
        kind = SubmissionKind(kind)

        # Blocklist, before any quota state is touched
        try:
            if await self.blocklist.is_blocked(identity):
                return self._reject(kind, RejectionReason.BLOCKED, 0, "Identity is blocked")
        except BlocklistUnavailableError as e:
            if self.blocklist_failure_policy == BlocklistFailurePolicy.FAIL_CLOSED:
                logger.error(f"Blocklist unavailable, rejecting submission: {e}")
                return self._reject(kind, RejectionReason.BLOCKLIST_UNAVAILABLE, 0, str(e))
            logger.warning(f"Blocklist unavailable, continuing without it: {e}")

        # Daily quota
        day = self.today()
        daily_limit = self.daily_limits[kind]
        try:
            current_count = await self.quota_store.get(identity, kind, day)
        except PersistenceError as e:
            logger.error(f"Quota store unavailable: {e}")
            return self._reject(kind, RejectionReason.PERSISTENCE_FAILURE, 0, e.user_message)
        if current_count >= daily_limit:
            return self._reject(
                kind, RejectionReason.QUOTA_EXCEEDED, current_count,
                f"Daily limit of {daily_limit} {kind.value}s reached"
            )

        # Payload
        if kind == SubmissionKind.MESSAGE:
            text = (payload if isinstance(payload, str) else "").strip()
            if not text:
                return self._reject(kind, RejectionReason.EMPTY_PAYLOAD, current_count, "Message is empty")
            record = ChatMessageRecord(
                message=text[:self.max_message_length],
                sender={"image": self.sender_image},
                timestamp=utc_now(),
                user_ip=identity
            )
            write = self.persistence.write_message(record)
        else:
            if not isinstance(payload, UploadPayload) or payload.size == 0:
                return self._reject(kind, RejectionReason.EMPTY_PAYLOAD, current_count, "No image selected")
            if payload.size > self.max_upload_bytes:
                return self._reject(
                    kind, RejectionReason.PAYLOAD_TOO_LARGE, current_count,
                    f"Upload of {payload.size} bytes exceeds {self.max_upload_bytes} bytes"
                )
            record = UploadRecord(
                key=generate_storage_key(payload.filename),
                data=payload.data,
                content_type=payload.content_type
            )
            write = self.persistence.write_upload(record)

        # Write, then count
        try:
            await asyncio.wait_for(write, timeout=self.write_timeout)
        except asyncio.TimeoutError:
            return self._reject(
                kind, RejectionReason.PERSISTENCE_FAILURE, current_count,
                f"Write timed out after {self.write_timeout}s"
            )
        except PersistenceError as e:
            logger.error(f"Persistence write failed: {e}")
            return self._reject(kind, RejectionReason.PERSISTENCE_FAILURE, current_count, e.user_message)

        try:
            new_count = await self.quota_store.increment(identity, kind, day)
        except PersistenceError as e:
            # The record is already stored; the submission stands
            logger.error(f"Failed to record {kind.value} quota for {identity!r}: {e}")
            new_count = current_count + 1

        logger.info(f"Accepted {kind.value} submission ({new_count}/{daily_limit} today)")
        return GateResult(
            status=GateStatus.ACCEPTED,
            kind=kind,
            current_count=new_count,
            daily_limit=daily_limit,
            record=record
        )

    async def remaining(self, identity: str, kind: Union[SubmissionKind, str]) -> int:
        """Submissions of a kind still allowed today."""
        kind = SubmissionKind(kind)
        count = await self.quota_store.get(identity, kind, self.today())
        return max(0, self.daily_limits[kind] - count)
