"""
Configuration settings for the Classboard client.
"""
import os
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Backend selection: "database" (SQLAlchemy) or "supabase" (hosted REST/Storage)
    BACKEND: str = os.getenv("BACKEND", "database")

    # Supabase Configuration
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "")
    MESSAGES_TABLE: str = os.getenv("MESSAGES_TABLE", "chats")
    BLOCKLIST_TABLE: str = os.getenv("BLOCKLIST_TABLE", "blacklist_ips")
    UPLOAD_BUCKET: str = os.getenv("UPLOAD_BUCKET", "images")
    # Bucket of approved images shown in the request list
    REQUEST_BUCKET: str = os.getenv("REQUEST_BUCKET", "GambarAman")
    UPLOAD_PUBLIC_BASE_URL: str = os.getenv("UPLOAD_PUBLIC_BASE_URL", "/uploads")

    # Database Configuration
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./data/classboard.db")

    # Application Configuration
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOCAL_STATE_PATH: Optional[str] = os.getenv("LOCAL_STATE_PATH", "./data/local_state.json")
    SENDER_IMAGE: str = os.getenv("SENDER_IMAGE", "/AnonimUser.png")

    # Submission Limits
    DAILY_MESSAGE_LIMIT: int = int(os.getenv("DAILY_MESSAGE_LIMIT", "20"))
    DAILY_UPLOAD_LIMIT: int = int(os.getenv("DAILY_UPLOAD_LIMIT", "20"))
    MAX_MESSAGE_LENGTH: int = int(os.getenv("MAX_MESSAGE_LENGTH", "60"))
    MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
    GALLERY_LIMIT: int = int(os.getenv("GALLERY_LIMIT", "100"))

    # Where daily counters live: "local" (session state file), "database" or "memory"
    QUOTA_STORE: str = os.getenv("QUOTA_STORE", "local")

    # Identity & Moderation
    IP_LOOKUP_URL: str = os.getenv("IP_LOOKUP_URL", "https://ipapi.co/json")
    IDENTITY_TTL_SECONDS: int = int(os.getenv("IDENTITY_TTL_SECONDS", "3600"))
    BLOCKLIST_FAILURE_POLICY: str = os.getenv("BLOCKLIST_FAILURE_POLICY", "closed")
    BLOCKLIST_CACHE_SECONDS: float = float(os.getenv("BLOCKLIST_CACHE_SECONDS", "0"))

    # Timeout applied to every call into an external collaborator
    EXTERNAL_CALL_TIMEOUT: float = float(os.getenv("EXTERNAL_CALL_TIMEOUT", "10"))

    @classmethod
    def validate_required_settings(cls) -> None:
        """Validate that all required settings are present."""
        if cls.BACKEND not in ("database", "supabase"):
            raise ValueError(f"Unsupported BACKEND: {cls.BACKEND}")

        if cls.QUOTA_STORE not in ("local", "database", "memory"):
            raise ValueError(f"Unsupported QUOTA_STORE: {cls.QUOTA_STORE}")

        if cls.BLOCKLIST_FAILURE_POLICY not in ("open", "closed"):
            raise ValueError(
                f"BLOCKLIST_FAILURE_POLICY must be 'open' or 'closed', got {cls.BLOCKLIST_FAILURE_POLICY}"
            )

        required_settings = []
        if cls.BACKEND == "supabase":
            required_settings = [
                ("SUPABASE_URL", cls.SUPABASE_URL),
                ("SUPABASE_KEY", cls.SUPABASE_KEY),
            ]

        missing_settings = []
        for setting_name, setting_value in required_settings:
            if not setting_value:
                missing_settings.append(setting_name)

        if missing_settings:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing_settings)}"
            )


# Global settings instance
settings = Settings()
