"""Configuration management for the storage service process."""
import os
import logging
from dotenv import load_dotenv

from pushstore.config import override_secrets

logger = logging.getLogger(__name__)

# Load environment variables, then let the secret file override them
load_dotenv()
override_secrets()


class Config:
    """Service configuration."""

    PORT = int(os.getenv("PORT", "8000"))
    DEBUG = os.getenv("DEBUG", "false").lower() == "true"
    EMULATED = os.getenv("EMULATED", "false").lower() == "true"
    GOOGLE_CLOUD_PROJECT = os.getenv("GOOGLE_CLOUD_PROJECT")
    GOOGLE_HISTORY_BLOB_BUCKET_NAME = os.getenv("GOOGLE_HISTORY_BLOB_BUCKET_NAME")

    @classmethod
    def validate(cls) -> bool:
        """Validate that required configuration is present."""
        required = [cls.GOOGLE_HISTORY_BLOB_BUCKET_NAME]
        if not cls.EMULATED:
            required.append(cls.GOOGLE_CLOUD_PROJECT)
        if not all(required):
            logger.warning("Missing required environment variables. Storage will not start.")
            return False
        return True
