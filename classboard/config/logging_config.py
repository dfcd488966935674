"""
Production logging configuration for the Classboard client.
"""
import logging
import logging.handlers
import os
import re
import sys
from pathlib import Path
from typing import Dict, Any

from .settings import settings


class ProductionLoggingConfig:
    """Logging configuration with file rotation and key redaction."""

    def __init__(self):
        self.log_dir = Path(os.getenv("LOG_FILE_PATH", "./logs/classboard.log")).parent
        self.log_file = self.log_dir / "classboard.log"
        self.error_log_file = self.log_dir / "error.log"

        # Log rotation settings
        self.max_bytes = int(os.getenv("LOG_MAX_SIZE", "10485760"))  # 10MB
        self.backup_count = int(os.getenv("LOG_BACKUP_COUNT", "5"))

    def get_formatter(self, include_extra: bool = False) -> logging.Formatter:
        """Get logging formatter with optional extra fields."""
        if include_extra:
            format_string = (
                "%(asctime)s - %(name)s - %(levelname)s - "
                "%(filename)s:%(lineno)d - %(funcName)s - %(message)s"
            )
        else:
            format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

        return logging.Formatter(
            format_string,
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    def setup_file_handler(self, filename: Path, level: int = logging.INFO) -> logging.Handler:
        """Setup rotating file handler."""
        try:
            filename.parent.mkdir(parents=True, exist_ok=True)

            handler = logging.handlers.RotatingFileHandler(
                filename=filename,
                maxBytes=self.max_bytes,
                backupCount=self.backup_count,
                encoding='utf-8'
            )
            handler.setLevel(level)
            handler.setFormatter(self.get_formatter(include_extra=True))
            return handler
        except (PermissionError, OSError) as e:
            # If file logging fails, fall back to console only
            print(f"Warning: Could not set up file logging ({e}). Using console logging only.")
            return self.setup_console_handler(level)

    def setup_console_handler(self, level: int = logging.INFO) -> logging.Handler:
        """Setup console handler for stdout."""
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(self.get_formatter())
        return handler

    def configure_root_logger(self) -> None:
        """Configure the root logger with all handlers."""
        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper()))

        root_logger.handlers.clear()

        console_handler = self.setup_console_handler()
        console_handler.addFilter(SensitiveDataFilter())
        root_logger.addHandler(console_handler)

        if not settings.DEBUG:
            file_handler = self.setup_file_handler(self.log_file)
            file_handler.addFilter(SensitiveDataFilter())
            root_logger.addHandler(file_handler)

            error_handler = self.setup_file_handler(self.error_log_file, logging.ERROR)
            error_handler.addFilter(SensitiveDataFilter())
            root_logger.addHandler(error_handler)

    def configure_specific_loggers(self) -> None:
        """Configure specific loggers for different components."""
        sqlalchemy_logger = logging.getLogger("sqlalchemy.engine")
        if settings.DEBUG:
            sqlalchemy_logger.setLevel(logging.INFO)
        else:
            sqlalchemy_logger.setLevel(logging.WARNING)

        logging.getLogger("aiohttp").setLevel(logging.WARNING)
        logging.getLogger("aiosqlite").setLevel(logging.WARNING)

        app_loggers = [
            "classboard.services",
            "classboard.repositories",
            "classboard.database",
            "classboard.exceptions",
        ]

        for logger_name in app_loggers:
            logger = logging.getLogger(logger_name)
            logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper()))

    def configure_all(self) -> Dict[str, Any]:
        """Configure all logging components and return configuration info."""
        self.configure_root_logger()
        self.configure_specific_loggers()

        config_info = {
            "log_level": settings.LOG_LEVEL,
            "debug_mode": settings.DEBUG,
            "log_directory": str(self.log_dir),
            "log_files": {
                "main": str(self.log_file),
                "error": str(self.error_log_file),
            },
            "rotation": {
                "max_bytes": self.max_bytes,
                "backup_count": self.backup_count
            }
        }

        logger = logging.getLogger(__name__)
        logger.info("Logging configuration completed")
        logger.info(f"Log level: {settings.LOG_LEVEL}")
        logger.info(f"Debug mode: {settings.DEBUG}")
        logger.info(f"Log directory: {self.log_dir}")

        return config_info


def setup_production_logging() -> Dict[str, Any]:
    """Setup production logging configuration."""
    config = ProductionLoggingConfig()
    return config.configure_all()


class SensitiveDataFilter(logging.Filter):
    """Filter to remove API keys and bearer tokens from logs."""

    SENSITIVE_PATTERNS = [
        re.compile(r"(apikey|api_key|supabase_key|token|secret|password)(\s*[=:]\s*)(\S+)", re.IGNORECASE),
        re.compile(r"(bearer)(\s+)(\S+)", re.IGNORECASE),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact sensitive values in the formatted message."""
        message = record.getMessage()
        redacted = message
        for pattern in self.SENSITIVE_PATTERNS:
            redacted = pattern.sub(r"\1\2***REDACTED***", redacted)

        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


# Context manager for structured logging
class LogContext:
    """Context manager for adding structured context to logs."""

    def __init__(self, **context):
        self.context = context
        self.old_factory = logging.getLogRecordFactory()

    def __enter__(self):
        def record_factory(*args, **kwargs):
            record = self.old_factory(*args, **kwargs)
            for key, value in self.context.items():
                setattr(record, key, value)
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        logging.setLogRecordFactory(self.old_factory)
