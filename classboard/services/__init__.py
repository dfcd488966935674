# Business logic services package

from .local_state import LocalState
from .quota_store import QuotaStore, InMemoryQuotaStore, LocalStateQuotaStore, DatabaseQuotaStore
from .identity_service import IdentityResolver
from .blocklist_service import BlocklistProvider, BlocklistService
from .persistence import (
    PersistenceBackend, DatabaseBackend, ChatMessageRecord, UploadRecord, GalleryItem
)
from .submission_gate import (
    SubmissionGate, GateResult, GateStatus, UploadPayload, BlocklistFailurePolicy
)
from .board_service import BoardSession, create_board_session

__all__ = [
    'LocalState',
    'QuotaStore',
    'InMemoryQuotaStore',
    'LocalStateQuotaStore',
    'DatabaseQuotaStore',
    'IdentityResolver',
    'BlocklistProvider',
    'BlocklistService',
    'PersistenceBackend',
    'DatabaseBackend',
    'ChatMessageRecord',
    'UploadRecord',
    'GalleryItem',
    'SubmissionGate',
    'GateResult',
    'GateStatus',
    'UploadPayload',
    'BlocklistFailurePolicy',
    'BoardSession',
    'create_board_session'
]
