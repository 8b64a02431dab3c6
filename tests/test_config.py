"""Tests for backend configuration."""

import json
import os
from unittest.mock import patch

import pytest

from pushstore.config import EMULATOR_HOST, EMULATOR_PROJECT_ID, StorageConfig, override_secrets


class TestStorageConfig:
    """Test configuration validation."""

    def test_emulated_forces_test_project(self):
        """Test emulated mode ignores the configured project."""
        config = StorageConfig(bucket_name="history", project_id="real", emulated=True)
        assert config.project_id == EMULATOR_PROJECT_ID
        assert config.emulator_host == EMULATOR_HOST

    def test_project_required(self):
        """Test a real deployment needs a project id."""
        with pytest.raises(ValueError, match="project id"):
            StorageConfig(bucket_name="history")

    def test_bucket_required(self):
        """Test a bucket name is always required."""
        with pytest.raises(ValueError, match="bucket"):
            StorageConfig(bucket_name="", project_id="p")

    def test_from_env(self):
        """Test reading the environment."""
        env = {
            "GOOGLE_CLOUD_PROJECT": "my-project",
            "GOOGLE_FIRESTORE_DATABASE_ID": "releases",
            "GOOGLE_HISTORY_BLOB_BUCKET_NAME": "history",
            "EMULATED": "false",
        }
        with patch.dict(os.environ, env, clear=True), patch("pushstore.config.load_dotenv"):
            config = StorageConfig.from_env()
        assert config == StorageConfig(
            bucket_name="history", project_id="my-project", database_id="releases"
        )

    def test_from_env_emulated(self):
        """Test EMULATED=true needs no project."""
        env = {"EMULATED": "true", "GOOGLE_HISTORY_BLOB_BUCKET_NAME": "history"}
        with patch.dict(os.environ, env, clear=True), patch("pushstore.config.load_dotenv"):
            config = StorageConfig.from_env()
        assert config.emulated
        assert config.project_id == EMULATOR_PROJECT_ID
        assert config.database_id is None


class TestOverrideSecrets:
    """Test the JSON secret file override."""

    def test_no_path(self):
        """Test nothing happens without SECRET_PATH."""
        with patch.dict(os.environ, {}, clear=True):
            assert override_secrets() == 0

    def test_overrides_environment(self, tmp_path):
        """Test secrets replace existing variables."""
        secret_file = tmp_path / "secrets.json"
        secret_file.write_text(json.dumps({"GOOGLE_CLOUD_PROJECT": "from-secret", "PORT": 9000}))
        env = {"SECRET_PATH": str(secret_file), "GOOGLE_CLOUD_PROJECT": "from-env"}
        with patch.dict(os.environ, env, clear=True):
            assert override_secrets() == 2
            assert os.environ["GOOGLE_CLOUD_PROJECT"] == "from-secret"
            assert os.environ["PORT"] == "9000"

    def test_missing_file(self, tmp_path):
        """Test a configured but missing secret file is an error."""
        with pytest.raises(FileNotFoundError):
            override_secrets(str(tmp_path / "missing.json"))
