"""
Tests for notifications built by ErrorHandler.
"""
import logging

import pytest

from classboard.exceptions.base_exceptions import (
    BlocklistUnavailableError,
    ConfigurationError,
    IdentityResolutionError,
    PersistenceError,
)
from classboard.exceptions.error_handler import ErrorContext, ErrorHandler, ErrorSeverity
from classboard.models.enums import RejectionReason, SubmissionKind
from classboard.services.submission_gate import GateResult, GateStatus


def rejected(kind, reason, message=None, limit=20):
    return GateResult(GateStatus.REJECTED, kind, 0, limit, reason=reason, message=message)


@pytest.fixture
def handler():
    return ErrorHandler()


class TestNotifications:
    """Gate results mapped to user notices."""

    def test_accepted_upload_reports_success(self, handler):
        result = GateResult(GateStatus.ACCEPTED, SubmissionKind.UPLOAD, 1, 20)

        notification = handler.notification_for(result)

        assert notification.icon == "success"
        assert notification.title == "Upload Successful"

    def test_accepted_message_is_silent(self, handler):
        result = GateResult(GateStatus.ACCEPTED, SubmissionKind.MESSAGE, 1, 20)

        assert handler.notification_for(result) is None

    @pytest.mark.parametrize("kind,text", [
        (SubmissionKind.MESSAGE, "You are blocked from sending messages."),
        (SubmissionKind.UPLOAD, "You are blocked from uploading images."),
    ])
    def test_blocked(self, handler, kind, text):
        notification = handler.notification_for(rejected(kind, RejectionReason.BLOCKED))

        assert notification.title == "Blocked"
        assert notification.text == text

    def test_upload_limit_names_the_limit(self, handler):
        notification = handler.notification_for(
            rejected(SubmissionKind.UPLOAD, RejectionReason.QUOTA_EXCEEDED, limit=20)
        )

        assert notification.title == "Limit Reached"
        assert notification.text == "You have reached the maximum uploads for today (20)."

    def test_message_limit(self, handler):
        notification = handler.notification_for(
            rejected(SubmissionKind.MESSAGE, RejectionReason.QUOTA_EXCEEDED)
        )

        assert notification.title == "Message limit exceeded"

    def test_too_large(self, handler):
        notification = handler.notification_for(
            rejected(SubmissionKind.UPLOAD, RejectionReason.PAYLOAD_TOO_LARGE)
        )

        assert notification.title == "File too large"
        assert notification.text == "Maximum allowed size is 10MB."

    def test_persistence_failure_carries_detail(self, handler):
        notification = handler.notification_for(
            rejected(SubmissionKind.UPLOAD, RejectionReason.PERSISTENCE_FAILURE, message="Bucket is full")
        )

        assert notification.title == "Upload Failed"
        assert notification.text == "Bucket is full"

    def test_blocklist_unavailable(self, handler):
        notification = handler.notification_for(
            rejected(SubmissionKind.MESSAGE, RejectionReason.BLOCKLIST_UNAVAILABLE)
        )

        assert notification.title == "Service unavailable"

    def test_submission_in_progress(self, handler):
        notification = handler.notification_for(
            rejected(SubmissionKind.MESSAGE, RejectionReason.SUBMISSION_IN_PROGRESS)
        )

        assert notification.icon == "info"


class TestHandleError:
    """Exceptions mapped to user notices."""

    def test_configuration_error(self, handler):
        error = ConfigurationError("SUPABASE_KEY missing", "SUPABASE_KEY")

        notification = handler.handle_error(error, ErrorContext(action="startup"))

        assert notification.title == "Service unavailable"
        assert notification.text == error.user_message

    def test_persistence_error_uses_user_message(self, handler):
        error = PersistenceError("connection reset", "list_uploads")

        notification = handler.handle_error(error, ErrorContext(action="gallery"))

        assert notification.text == "Storage temporarily unavailable. Please try again."

    def test_connection_error(self, handler):
        notification = handler.handle_error(ConnectionError("reset"), ErrorContext())

        assert notification.title == "Connection problem"

    def test_unknown_error_uses_fallback(self, handler):
        notification = handler.handle_error(RuntimeError("bug"), ErrorContext(), fallback_message="Try later")

        assert notification.text == "Try later"

    def test_repeated_errors_raise_severity(self, handler):
        error = BlocklistUnavailableError("down")
        context = ErrorContext(identity="1.2.3.4")

        severities = [handler._get_error_severity(error, context) for _ in range(3)]

        assert severities == [ErrorSeverity.LOW, ErrorSeverity.LOW, ErrorSeverity.MEDIUM]

    def test_error_counts_stay_bounded(self, handler):
        handler.MAX_TRACKED_ERRORS = 2

        for identity in ("1.1.1.1", "2.2.2.2", "3.3.3.3"):
            handler.handle_error(BlocklistUnavailableError("down"), ErrorContext(identity=identity))

        assert len(handler.error_counts) <= 2


class TestLogLevels:
    """The computed severity picks the log level."""

    @pytest.mark.parametrize("error,level", [
        (ConfigurationError("missing key", "SUPABASE_KEY"), logging.CRITICAL),
        (RuntimeError("bug"), logging.ERROR),
        (PersistenceError("disk gone", "write_upload", recoverable=False), logging.ERROR),
        (PersistenceError("timeout", "write_upload"), logging.WARNING),
        (IdentityResolutionError("offline"), logging.WARNING),
    ])
    def test_level_follows_severity(self, handler, caplog, error, level):
        with caplog.at_level(logging.DEBUG, logger="classboard.exceptions.error_handler"):
            handler.handle_error(error, ErrorContext(action="send"))

        assert caplog.records[-1].levelno == level

    def test_repeated_error_escalates_to_error(self, handler, caplog):
        context = ErrorContext(identity="1.2.3.4")

        with caplog.at_level(logging.DEBUG, logger="classboard.exceptions.error_handler"):
            for _ in range(3):
                handler.handle_error(BlocklistUnavailableError("down"), context)

        assert [record.levelno for record in caplog.records] == [
            logging.WARNING, logging.WARNING, logging.ERROR
        ]
