# ABOUTME: Structured logging with correlation IDs for the Service Fabric client
# ABOUTME: Configures structlog and records audit entries for destructive calls

"""
Structured logging with correlation IDs and audit trails.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

Two observability features for the client:

1. STRUCTURED LOGGING: structlog, with a JSON renderer for production and a
   console renderer for development. The client logs every request at debug
   level and every non-200 answer at warning level.

2. AUDIT LOGGING: Deleting an application or a service is irreversible, so
   the client can record each attempt (and its outcome) through an
   AuditLogger.

Logging never replaces raising. An error is logged AND propagated to the
caller; nothing is swallowed here.

=============================================================================
CORRELATION IDs
=============================================================================

A single list_applications() call may fetch many pages. Every log line
carries a correlation_id so all page fetches of one logical call can be
grouped:

    {"correlation_id": "a1b2c3d4", "event": "Service Fabric request", "url": ".../Applications/?api-version=3.0"}
    {"correlation_id": "a1b2c3d4", "event": "Service Fabric request", "url": "...&continue=page2"}

The ID lives in a ContextVar, so concurrent callers in separate threads or
tasks each see their own value. Applications embedding this client can set
it explicitly with set_correlation_id() at the start of a unit of work.
"""

from __future__ import annotations

import json
import logging
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from pathlib import Path

    from servicefabric_client.config import ClientSettings
    from servicefabric_client.utils.errors import ServiceFabricError


# =============================================================================
# CORRELATION ID MANAGEMENT
# =============================================================================

correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """
    Get current correlation ID or generate new one.

    Returns:
        8-character correlation ID string (first 8 chars of a UUID4).
    """
    cid = correlation_id.get()
    if not cid:
        cid = str(uuid.uuid4())[:8]
        correlation_id.set(cid)
    return cid


def set_correlation_id(cid: str) -> None:
    """
    Set correlation ID for current context.

    Passing "" makes the next get_correlation_id() generate a fresh one.
    """
    correlation_id.set(cid)


def add_correlation_id(
    logger: structlog.types.WrappedLogger,  # noqa: ARG001 - Required by structlog Processor API
    method_name: str,  # noqa: ARG001 - Required by structlog Processor API
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """structlog processor adding the current correlation ID to each event."""
    event_dict["correlation_id"] = get_correlation_id()
    return event_dict


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
) -> None:
    """
    Configure structured logging.

    Call once at application startup. The library itself never calls this;
    it only obtains loggers via structlog.get_logger().

    PROCESSOR PIPELINE:
    -------------------
    1. merge_contextvars: Values bound with structlog.contextvars
    2. add_log_level: "level" field
    3. TimeStamper: ISO 8601 "timestamp" field
    4. add_correlation_id: "correlation_id" field
    5. Renderer: JSON lines or colored console output

    Args:
        level: "DEBUG", "INFO", "WARNING", "ERROR" or "CRITICAL".
               DEBUG shows every request URL the client issues.
        json_output: JSON lines when True, console rendering otherwise.
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_correlation_id,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )



def configure_from_settings(settings: ClientSettings) -> AuditLogger | None:
    """
    Apply the logging part of ClientSettings.

    Configures structlog from SERVICEFABRIC_LOG_LEVEL / SERVICEFABRIC_JSON_LOGS
    and returns an AuditLogger writing to SERVICEFABRIC_AUDIT_LOG, or None
    when no audit file is configured.

    Example:
        settings = load_settings()
        audit = configure_from_settings(settings)
        client = ServiceFabricClient.from_settings(settings, audit_logger=audit)
    """
    configure_logging(level=settings.log_level, json_output=settings.json_logs)
    if settings.audit_log is None:
        return None
    return AuditLogger(settings.audit_log, cluster=settings.endpoint)


# =============================================================================
# AUDIT LOGGER
# =============================================================================


class AuditLogger:
    """
    Audit trail for deletions.

    Every entry records:
    - timestamp: UTC ISO 8601
    - correlation_id: Links the entry to the request logs
    - cluster: Endpoint the deletion was sent to ("" when not given)
    - action: "delete_application" or "delete_service"
    - target: The application or service ID
    - result: "success" or "error"
    - details: Optional extra context (error text)

    Entries are appended as JSON lines to log_path when one is given, and
    emitted through structlog as an "audit" event otherwise.

    Example:
        {"timestamp": "2025-01-15T10:30:00+00:00", "correlation_id": "abc12345",
         "cluster": "https://sf.example.com:19080", "action": "delete_service",
         "target": "samples~Calc~Svc", "result": "success"}
    """

    def __init__(self, log_path: Path | None = None, cluster: str = "") -> None:
        self._log_path = log_path
        self._cluster = cluster
        self._logger = structlog.get_logger("audit")

    @property
    def log_path(self) -> Path | None:
        return self._log_path

    def log(
        self,
        action: str,
        target: str,
        result: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        if self._log_path is None:
            self._logger.bind(cluster=self._cluster, action=action, target=target).info(
                "audit", result=result, details=details
            )
            return

        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "correlation_id": get_correlation_id(),
            "cluster": self._cluster,
            "action": action,
            "target": target,
            "result": result,
        }
        if details:
            entry["details"] = details
        with self._log_path.open("a") as f:
            f.write(json.dumps(entry) + "\n")

    def log_write(
        self,
        action: str,
        target: str,
        result: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Record a deletion the cluster accepted."""
        self.log(action, target, result, details)

    def log_error(self, action: str, target: str, error: ServiceFabricError) -> None:
        """Record a deletion that failed, keeping the error kind and any status code."""
        details: dict[str, Any] = {"error": str(error), "kind": type(error).__name__}
        status_code = getattr(error, "status_code", None)
        if status_code is not None:
            details["status_code"] = status_code
        self.log(action, target, "error", details)
