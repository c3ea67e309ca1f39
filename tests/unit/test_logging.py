# ABOUTME: Unit tests for logging utilities
# ABOUTME: Tests correlation IDs, configure_logging, AuditLogger and client log events

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import structlog
from structlog.testing import capture_logs

from conftest import ENDPOINT, ScriptedTransport, page
from servicefabric_client.config import ClientSettings
from servicefabric_client.utils.client import ServiceFabricClient
from servicefabric_client.utils.errors import EmptyResponseError, UpstreamStatusError
from servicefabric_client.utils.logging import (
    AuditLogger,
    add_correlation_id,
    configure_from_settings,
    configure_logging,
    correlation_id,
    get_correlation_id,
    set_correlation_id,
)


@pytest.fixture
def reset_structlog():
    """Restore structlog defaults after a test reconfigures it."""
    yield
    structlog.reset_defaults()


@pytest.mark.unit
class TestCorrelationId:
    """Tests for correlation ID generation and context management."""

    def test_generates_new_when_empty(self):
        """Test that a fresh 8-character hex ID is generated when none exists."""
        correlation_id.set("")

        cid = get_correlation_id()

        assert len(cid) == 8
        int(cid, 16)

    def test_returns_existing(self):
        """Test that an explicitly set ID is returned unchanged."""
        set_correlation_id("test1234")

        assert get_correlation_id() == "test1234"

    def test_generated_id_is_stable(self):
        """Test that subsequent calls return the same generated ID."""
        correlation_id.set("")

        assert get_correlation_id() == get_correlation_id()

    def test_processor_adds_correlation_id(self):
        """Test the structlog processor stamps the current ID on the event."""
        set_correlation_id("proc1234")

        result = add_correlation_id(MagicMock(), "info", {"event": "test_event"})

        assert result == {"event": "test_event", "correlation_id": "proc1234"}


@pytest.mark.unit
@pytest.mark.usefixtures("reset_structlog")
class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_console_renderer_by_default(self):
        """Test the development renderer closes the pipeline by default."""
        configure_logging()

        processors = structlog.get_config()["processors"]
        assert add_correlation_id in processors
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_json_renderer(self):
        """Test JSON output swaps in the JSON renderer."""
        configure_logging(json_output=True)

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_level_filtering(self):
        """Test the configured level filters lower-level events."""
        configure_logging(level="WARNING")

        wrapper = structlog.get_config()["wrapper_class"]
        assert wrapper is structlog.make_filtering_bound_logger(30)

    def test_unknown_level_falls_back_to_info(self):
        """Test an unrecognised level name does not raise."""
        configure_logging(level="chatty")

        wrapper = structlog.get_config()["wrapper_class"]
        assert wrapper is structlog.make_filtering_bound_logger(20)


@pytest.mark.unit
class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_log_to_file(self, tmp_path: Path):
        """Test entries are appended to the file as JSON lines."""
        log_file = tmp_path / "audit.log"
        logger = AuditLogger(log_path=log_file, cluster="http://sf:19080")
        set_correlation_id("file1234")

        logger.log("delete_application", "samples~CalculatorApp", "success")
        logger.log("delete_service", "samples~CalculatorApp~Svc", "success")

        entries = [json.loads(line) for line in log_file.read_text().splitlines()]
        assert [e["action"] for e in entries] == ["delete_application", "delete_service"]
        assert entries[0]["correlation_id"] == "file1234"
        assert entries[0]["cluster"] == "http://sf:19080"
        assert entries[0]["timestamp"].endswith("+00:00")
        assert "details" not in entries[0]

    def test_log_to_structlog_without_path(self):
        """Test entries go through structlog with the deletion bound as context."""
        logger = AuditLogger(cluster="http://sf:19080")

        with capture_logs() as logs:
            logger.log("delete_service", "svc", "success", {"key": "value"})

        assert logs == [
            {
                "event": "audit",
                "log_level": "info",
                "cluster": "http://sf:19080",
                "action": "delete_service",
                "target": "svc",
                "result": "success",
                "details": {"key": "value"},
            }
        ]

    def test_log_write_delegates(self):
        """Test log_write passes its arguments to log."""
        logger = AuditLogger()

        with patch.object(logger, "log") as mock_log:
            logger.log_write("delete_application", "app", "success", {"n": 1})

            mock_log.assert_called_once_with("delete_application", "app", "success", {"n": 1})

    def test_log_error_records_status(self, tmp_path: Path):
        """Test log_error keeps the error text, its kind and the status code."""
        log_file = tmp_path / "audit.log"
        logger = AuditLogger(log_path=log_file)
        error = UpstreamStatusError(409, f"{ENDPOINT}/Services/svc/$/Delete?api-version=3.0")

        logger.log_error("delete_service", "svc", error)

        entry = json.loads(log_file.read_text())
        assert entry["result"] == "error"
        assert entry["details"] == {
            "error": str(error),
            "kind": "UpstreamStatusError",
            "status_code": 409,
        }

    def test_log_error_without_status(self, tmp_path: Path):
        """Test errors without a status code omit it."""
        log_file = tmp_path / "audit.log"
        logger = AuditLogger(log_path=log_file)

        logger.log_error("delete_application", "app", EmptyResponseError(ENDPOINT))

        details = json.loads(log_file.read_text())["details"]
        assert details["kind"] == "EmptyResponseError"
        assert "status_code" not in details


@pytest.mark.unit
@pytest.mark.usefixtures("reset_structlog")
class TestConfigureFromSettings:
    """Tests for configure_from_settings."""

    def test_applies_level_and_renderer(self):
        """Test log level and JSON output come from the settings."""
        settings = ClientSettings(log_level="ERROR", json_logs=True, audit_log=None)

        audit = configure_from_settings(settings)

        config = structlog.get_config()
        assert audit is None
        assert isinstance(config["processors"][-1], structlog.processors.JSONRenderer)
        assert config["wrapper_class"] is structlog.make_filtering_bound_logger(40)

    def test_returns_audit_logger_for_audit_file(self, tmp_path: Path):
        """Test an audit file setting yields a file-backed AuditLogger."""
        settings = ClientSettings(endpoint="http://sf:19080", audit_log=tmp_path / "audit.log")

        audit = configure_from_settings(settings)

        assert audit is not None
        assert audit.log_path == tmp_path / "audit.log"



@pytest.mark.unit
class TestClientLogEvents:
    """Tests for the events the client emits."""

    def test_each_page_fetch_is_logged(self):
        """Test every request and the listing summary are logged."""
        transport = ScriptedTransport(
            (200, page([{"Id": "a"}], "tok")),
            (200, page([{"Id": "b"}])),
        )
        client = ServiceFabricClient(ENDPOINT, transport=transport)

        with capture_logs() as logs:
            client.list_applications()

        requests = [e for e in logs if e["event"] == "Service Fabric request"]
        assert [e["url"] for e in requests] == transport.urls
        summary = [e for e in logs if e["event"] == "Listing complete"]
        assert summary[0]["pages"] == 2
        assert summary[0]["items"] == 2

    def test_error_status_logged_as_warning(self):
        """Test a non-200 answer is logged before it is raised."""
        client = ServiceFabricClient(ENDPOINT, transport=ScriptedTransport((503, "")))

        with capture_logs() as logs, pytest.raises(UpstreamStatusError):
            client.list_applications()

        warnings = [e for e in logs if e["log_level"] == "warning"]
        assert warnings[0]["status"] == 503
