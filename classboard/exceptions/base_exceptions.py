"""
Base exceptions for Classboard error handling
"""

from typing import Optional, Dict, Any


class ClassboardException(Exception):
    """Base exception for all Classboard errors"""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        user_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        recoverable: bool = True
    ):
        super().__init__(message)
        self.error_code = error_code
        self.user_message = user_message or message
        self.context = context or {}
        self.recoverable = recoverable


class PersistenceError(ClassboardException):
    """Raised when a write to or read from the backend fails"""

    def __init__(
        self,
        message: str,
        operation: str,
        resource: Optional[str] = None,
        recoverable: bool = True
    ):
        super().__init__(
            message=message,
            error_code=f"PERSISTENCE_{operation.upper()}",
            user_message="Storage temporarily unavailable. Please try again.",
            recoverable=recoverable
        )
        self.operation = operation
        self.resource = resource


class BlocklistUnavailableError(ClassboardException):
    """Raised when the blocklist cannot be fetched"""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="BLOCKLIST_UNAVAILABLE",
            user_message="Moderation service unavailable. Please try again later.",
            recoverable=True
        )


class IdentityResolutionError(ClassboardException):
    """Raised when the client identity cannot be looked up"""

    def __init__(self, message: str, lookup_url: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="IDENTITY_RESOLUTION",
            context={"lookup_url": lookup_url} if lookup_url else None,
            recoverable=True
        )
        self.lookup_url = lookup_url


class ConfigurationError(ClassboardException):
    """Raised when configuration is invalid or missing"""

    def __init__(self, message: str, config_key: str):
        super().__init__(
            message=message,
            error_code=f"CONFIG_{config_key.upper()}",
            user_message="Service temporarily unavailable due to configuration issues.",
            recoverable=False
        )
        self.config_key = config_key
