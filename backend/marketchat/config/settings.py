"""Application configuration settings"""

import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    # Service settings
    TESTING = os.getenv("TESTING", "false").lower() in {"1", "true", "yes", "on"}
    DEBUG = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes", "on"}

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_PATH = os.getenv("LOG_PATH") or None
    LOG_FORMAT = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s",
    )

    # Auth (JWT issued by the external identity provider)
    SERVICE_AUTH_SECRET = os.getenv("SERVICE_AUTH_SECRET", "")
    SERVICE_AUTH_ISSUER = os.getenv("SERVICE_AUTH_ISSUER", "marketchat-identity")
    SERVICE_AUTH_AUDIENCE = os.getenv("SERVICE_AUTH_AUDIENCE", "authenticated")
    # Chat is only available to accounts with a verified email
    REQUIRE_VERIFIED_EMAIL = os.getenv("REQUIRE_VERIFIED_EMAIL", "true").lower() in {
        "1",
        "true",
        "yes",
        "on",
    }

    # Identity anonymization
    # Secret key for handle derivation. Changing it changes every handle.
    HANDLE_SECRET = os.getenv("HANDLE_SECRET", "")
    HANDLE_LENGTH = int(os.getenv("HANDLE_LENGTH", "32"))
    # Remote privileged boundary; empty = derive handles in-process
    IDENTITY_GATEWAY_URL = os.getenv("IDENTITY_GATEWAY_URL", "")
    IDENTITY_GATEWAY_KEY = os.getenv("IDENTITY_GATEWAY_KEY", "")
    IDENTITY_GATEWAY_TIMEOUT = float(os.getenv("IDENTITY_GATEWAY_TIMEOUT", "5"))

    # Messages
    MESSAGE_MAX_LENGTH = int(os.getenv("MESSAGE_MAX_LENGTH", "200"))
    IMAGE_ONLY_PREVIEW = os.getenv("IMAGE_ONLY_PREVIEW", "Sent an image")

    # Sync engine
    SYNC_POLL_INTERVAL_SECONDS = float(os.getenv("SYNC_POLL_INTERVAL_SECONDS", "2"))
    SYNC_REFRESH_LIMIT = int(os.getenv("SYNC_REFRESH_LIMIT", "50"))
    # Max distance between an optimistic entry and its confirmed server copy
    RECONCILE_MATCH_WINDOW_SECONDS = float(
        os.getenv("RECONCILE_MATCH_WINDOW_SECONDS", "30")
    )

    # Attachments
    ATTACHMENT_MAX_MB = float(os.getenv("ATTACHMENT_MAX_MB", "5"))
    ATTACHMENT_MAX_BYTES = int(ATTACHMENT_MAX_MB * 1024 * 1024)
    ATTACHMENT_MIME_TYPES = os.getenv(
        "ATTACHMENT_MIME_TYPES", "image/jpeg,image/png,image/gif,image/webp"
    ).split(",")

    # Blob storage: "local" (disk + static files) or "supabase"
    BLOB_BACKEND = os.getenv("BLOB_BACKEND", "local")
    UPLOAD_BASE = os.getenv("UPLOAD_BASE", "uploads")
    PUBLIC_MEDIA_URL = os.getenv("PUBLIC_MEDIA_URL", "http://localhost:5001/media")
    SUPABASE_URL = os.getenv("SUPABASE_URL", "")
    SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY", "")
    CHAT_IMAGES_BUCKET = os.getenv("CHAT_IMAGES_BUCKET", "chat_images")
    BLOB_UPLOAD_TIMEOUT = float(os.getenv("BLOB_UPLOAD_TIMEOUT", "30"))

    # Redis settings
    USE_REDIS = os.getenv("USE_REDIS", "true").lower() in {"1", "true", "yes", "on"}
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    REDIS_CACHE_TTL: int = int(os.getenv("REDIS_CACHE_TTL", "86400"))
    USE_CHANGE_FEED = os.getenv("USE_CHANGE_FEED", "true").lower() in {
        "1",
        "true",
        "yes",
        "on",
    }

    # Postgresql Database settings
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    CONVERSATION_USER_LIMIT: int = int(os.getenv("CONVERSATION_USER_LIMIT", "50"))

    # Chat sessions with no request for this long are closed
    CHAT_SESSION_IDLE_SECONDS = float(os.getenv("CHAT_SESSION_IDLE_SECONDS", "900"))
    CHAT_SESSION_SWEEP_SECONDS = float(os.getenv("CHAT_SESSION_SWEEP_SECONDS", "60"))


class DevelopmentConfig(Config):
    """Development configuration"""

    DEBUG = True


class TestingConfig(Config):
    """Testing configuration"""

    TESTING = True
    USE_REDIS = False
    SYNC_POLL_INTERVAL_SECONDS = 0.05


class ProductionConfig(Config):
    """Production configuration"""

    pass


# Configuration dictionary
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env=None):
    """Get configuration based on environment"""
    if env is None:
        env = os.getenv("APP_ENV", "development")
    return config.get(env, config["default"])
