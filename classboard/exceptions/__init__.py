"""
Custom exceptions for the Classboard client
"""

from .base_exceptions import (
    ClassboardException,
    PersistenceError,
    BlocklistUnavailableError,
    IdentityResolutionError,
    ConfigurationError
)

from .error_handler import (
    ErrorHandler,
    ErrorContext,
    ErrorSeverity,
    Notification
)

__all__ = [
    'ClassboardException',
    'PersistenceError',
    'BlocklistUnavailableError',
    'IdentityResolutionError',
    'ConfigurationError',
    'ErrorHandler',
    'ErrorContext',
    'ErrorSeverity',
    'Notification'
]
