# ABOUTME: Unit tests for configuration management
# ABOUTME: Tests settings defaults, environment loading and validation

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from servicefabric_client.config import ClientSettings, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Remove SERVICEFABRIC_* variables leaking in from the caller's shell."""
    for key in list(os.environ):
        if key.startswith("SERVICEFABRIC_"):
            monkeypatch.delenv(key)


@pytest.mark.unit
class TestEndpointValidation:
    """Tests for endpoint normalisation."""

    def test_url_validation_adds_https(self):
        """Test that URL without scheme gets https added."""
        settings = ClientSettings(endpoint="mycluster.westus.cloudapp.azure.com:19080")
        assert settings.endpoint == "https://mycluster.westus.cloudapp.azure.com:19080"

    def test_url_validation_preserves_http(self):
        """Test that explicit http scheme is preserved."""
        settings = ClientSettings(endpoint="http://localhost:19080")
        assert settings.endpoint == "http://localhost:19080"

    def test_url_validation_removes_trailing_slash(self):
        """Test that trailing slash is removed from URL."""
        settings = ClientSettings(endpoint="https://sf.example.com:19080/")
        assert settings.endpoint == "https://sf.example.com:19080"

    def test_empty_endpoint_left_alone(self):
        """Test an unconfigured endpoint stays empty instead of becoming https://."""
        assert ClientSettings().endpoint == ""


@pytest.mark.unit
class TestClientSettings:
    """Tests for ClientSettings defaults and environment mapping."""

    def test_defaults(self):
        """Test default settings."""
        settings = ClientSettings()

        assert settings.api_version == "3.0"
        assert settings.timeout == 30.0
        assert settings.log_level == "INFO"
        assert settings.json_logs is False
        assert settings.audit_log is None

    def test_env_prefix(self):
        """Test environment variable prefix."""
        env = {
            "SERVICEFABRIC_ENDPOINT": "http://localhost:19080",
            "SERVICEFABRIC_API_VERSION": "6.4",
            "SERVICEFABRIC_TIMEOUT": "5",
            "SERVICEFABRIC_JSON_LOGS": "true",
            "SERVICEFABRIC_AUDIT_LOG": "/var/log/sf-audit.log",
        }
        with patch.dict(os.environ, env):
            settings = ClientSettings()

        assert settings.endpoint == "http://localhost:19080"
        assert settings.api_version == "6.4"
        assert settings.timeout == 5.0
        assert settings.json_logs is True
        assert settings.audit_log == Path("/var/log/sf-audit.log")

    def test_invalid_log_level(self):
        """Test unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            ClientSettings(log_level="VERBOSE")

    @pytest.mark.parametrize("timeout", [0, -1])
    def test_non_positive_timeout(self, timeout):
        """Test the timeout must be positive."""
        with pytest.raises(ValidationError):
            ClientSettings(timeout=timeout)


@pytest.mark.unit
class TestLoadSettings:
    """Tests for load_settings."""

    def test_reads_env_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        """Test SERVICEFABRIC_ENV_FILE points at an extra .env file."""
        env_file = tmp_path / "sf.env"
        env_file.write_text(
            "SERVICEFABRIC_ENDPOINT=sf.internal:19080\nSERVICEFABRIC_LOG_LEVEL=DEBUG\n"
        )
        monkeypatch.setenv("SERVICEFABRIC_ENV_FILE", str(env_file))

        settings = load_settings()

        assert settings.endpoint == "https://sf.internal:19080"
        assert settings.log_level == "DEBUG"

    def test_without_env_file(self):
        """Test loading works with no env file configured."""
        settings = load_settings()

        assert settings.endpoint == ""
