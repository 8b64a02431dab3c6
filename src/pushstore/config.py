"""Backend configuration for the storage layer."""
import json
import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

EMULATOR_PROJECT_ID = "test-project"
EMULATOR_HOST = "localhost:8081"


def override_secrets(secret_path: Optional[str] = None) -> int:
    """Copy key/value pairs from a JSON secret file into the environment.

    The file is taken from SECRET_PATH when no path is given; nothing happens
    when neither is set.

    Returns:
        Number of variables set
    """
    secret_path = secret_path or os.getenv("SECRET_PATH")
    if not secret_path:
        return 0

    with open(secret_path, encoding="utf-8") as f:
        secrets = json.load(f)

    for key, value in secrets.items():
        os.environ[key] = str(value)
    logger.info(f"Loaded {len(secrets)} secret(s) from {secret_path}")
    return len(secrets)


@dataclass(frozen=True)
class StorageConfig:
    """Firestore and Cloud Storage settings.

    In emulated mode the project is forced to the emulator's test project and
    all traffic goes to `emulator_host`. Otherwise a project id is required.
    """

    bucket_name: str
    project_id: Optional[str] = None
    database_id: Optional[str] = None
    emulated: bool = False
    emulator_host: str = EMULATOR_HOST

    def __post_init__(self):
        if self.emulated:
            object.__setattr__(self, "project_id", EMULATOR_PROJECT_ID)
        elif not self.project_id:
            raise ValueError("GCP credentials not set: a project id is required")
        if not self.bucket_name:
            raise ValueError("A history blob bucket name is required")

    @classmethod
    def from_env(cls) -> "StorageConfig":
        load_dotenv()
        return cls(
            bucket_name=os.getenv("GOOGLE_HISTORY_BLOB_BUCKET_NAME", ""),
            project_id=os.getenv("GOOGLE_CLOUD_PROJECT"),
            database_id=os.getenv("GOOGLE_FIRESTORE_DATABASE_ID") or None,
            emulated=os.getenv("EMULATED", "false").lower() == "true",
            emulator_host=os.getenv("EMULATOR_HOST", EMULATOR_HOST),
        )
