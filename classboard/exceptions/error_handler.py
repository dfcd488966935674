"""
Centralized error handling for the Classboard client
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, TYPE_CHECKING

from classboard.models.enums import RejectionReason, SubmissionKind
from .base_exceptions import (
    ClassboardException, PersistenceError,
    IdentityResolutionError, ConfigurationError
)

if TYPE_CHECKING:
    from classboard.services.submission_gate import GateResult

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Error severity levels"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """Context information for error handling"""
    identity: Optional[str] = None
    kind: Optional[SubmissionKind] = None
    action: Optional[str] = None
    timestamp: Optional[datetime] = None
    additional_data: Optional[Dict[str, Any]] = None


@dataclass
class Notification:
    """Immediate notice shown to the user"""
    icon: str
    title: str
    text: str = ""


class ErrorHandler:
    """Turns gate rejections and exceptions into user notifications"""

    MAX_TRACKED_ERRORS = 1000

    def __init__(self, max_upload_bytes: int = 10 * 1024 * 1024):
        self.max_upload_bytes = max_upload_bytes
        self.error_counts: Dict[str, int] = {}

    def notification_for(self, result: "GateResult") -> Optional[Notification]:
        """
        Build the notification for a gate result.

        Accepted messages need no notice; accepted uploads get a success notice.
        """
        is_upload = result.kind == SubmissionKind.UPLOAD

        if result.accepted:
            if is_upload:
                return Notification("success", "Upload Successful", "Your image was uploaded!")
            return None

        reason = result.reason
        if reason == RejectionReason.BLOCKED:
            action = "uploading images" if is_upload else "sending messages"
            return Notification("error", "Blocked", f"You are blocked from {action}.")

        if reason == RejectionReason.QUOTA_EXCEEDED:
            if is_upload:
                return Notification(
                    "error", "Limit Reached",
                    f"You have reached the maximum uploads for today ({result.daily_limit})."
                )
            return Notification("error", "Message limit exceeded", "You have reached your daily message limit.")

        if reason == RejectionReason.EMPTY_PAYLOAD:
            if is_upload:
                return Notification("warning", "No image selected", "Choose an image to upload.")
            return Notification("warning", "Empty message", "Type a message before sending.")

        if reason == RejectionReason.PAYLOAD_TOO_LARGE:
            megabytes = self.max_upload_bytes // (1024 * 1024)
            return Notification("error", "File too large", f"Maximum allowed size is {megabytes}MB.")

        if reason == RejectionReason.PERSISTENCE_FAILURE:
            if is_upload:
                return Notification("error", "Upload Failed", result.message or "")
            return Notification("error", "Failed to send message", result.message or "")

        if reason == RejectionReason.BLOCKLIST_UNAVAILABLE:
            return Notification(
                "error", "Service unavailable",
                "Could not verify your access right now. Please try again later."
            )

        if reason == RejectionReason.SUBMISSION_IN_PROGRESS:
            return Notification("info", "Please wait", "Your previous submission is still being sent.")

        return Notification("error", "Something went wrong", result.message or "")

    def handle_error(
        self,
        error: Exception,
        context: ErrorContext,
        fallback_message: str = "An unexpected error occurred. Please try again."
    ) -> Notification:
        """
        Handle any error and return the notification to show

        Args:
            error: The exception that occurred
            context: Context information about the error
            fallback_message: Default message if no specific handling exists

        Returns:
            Notification with a user-friendly message
        """
        self._log_error(error, context)

        if isinstance(error, ConfigurationError):
            return Notification("error", "Service unavailable", error.user_message)

        if isinstance(error, ClassboardException):
            return Notification("error", "Error", error.user_message)

        if isinstance(error, (ConnectionError, TimeoutError)):
            return Notification("error", "Connection problem", "Please check your connection and try again.")

        return Notification("error", "Error", fallback_message)

    def _log_error(self, error: Exception, context: ErrorContext):
        """Log error with context information at the level of its severity"""
        log_data = {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'identity': context.identity,
            'kind': context.kind.value if context.kind else None,
            'action': context.action,
            'timestamp': context.timestamp or datetime.now(),
        }

        if context.additional_data:
            log_data.update(context.additional_data)

        severity = self._get_error_severity(error, context)
        log_data['severity'] = severity.value
        exc_info = None if isinstance(error, ClassboardException) else error

        if severity == ErrorSeverity.CRITICAL:
            logger.critical(f"Configuration error: {log_data}")
        elif severity == ErrorSeverity.HIGH:
            logger.error(f"Service error: {log_data}", exc_info=exc_info)
        elif severity == ErrorSeverity.MEDIUM:
            logger.error(f"Repeated error: {log_data}")
        else:
            logger.warning(f"Recoverable error: {log_data}")

    def _get_error_severity(self, error: Exception, context: ErrorContext) -> ErrorSeverity:
        """Determine error severity based on type and frequency"""
        if isinstance(error, ConfigurationError):
            return ErrorSeverity.CRITICAL

        if not isinstance(error, ClassboardException):
            return ErrorSeverity.HIGH

        if isinstance(error, PersistenceError) and not error.recoverable:
            return ErrorSeverity.HIGH

        if isinstance(error, IdentityResolutionError):
            return ErrorSeverity.LOW

        error_key = f"{type(error).__name__}_{context.identity or 'global'}"
        if error_key not in self.error_counts and len(self.error_counts) >= self.MAX_TRACKED_ERRORS:
            self.error_counts.clear()
        self.error_counts[error_key] = self.error_counts.get(error_key, 0) + 1
        if self.error_counts[error_key] >= 3:
            return ErrorSeverity.MEDIUM

        return ErrorSeverity.LOW
