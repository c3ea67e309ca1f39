# ABOUTME: Configuration management for the Service Fabric client
# ABOUTME: Reads SERVICEFABRIC_* environment variables into validated settings

"""
Configuration management using pydantic-settings.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

Applications embedding the client usually want to point it at a cluster
through the environment rather than hard-coding an endpoint. This module:

1. READS SERVICEFABRIC_* environment variables (and an optional .env file)
2. VALIDATES them (URL shape, log level, positive timeout)
3. PROVIDES typed access for ServiceFabricClient.from_settings()

Constructing ServiceFabricClient directly does not need this module at all.

=============================================================================
ENVIRONMENT VARIABLE MAPPING
=============================================================================

    SERVICEFABRIC_ENDPOINT     -> Cluster management endpoint
                                  e.g. https://mycluster.westus.cloudapp.azure.com:19080
    SERVICEFABRIC_API_VERSION  -> REST API version (default: 3.0)
    SERVICEFABRIC_TIMEOUT      -> Per-request timeout in seconds (default: 30)
    SERVICEFABRIC_LOG_LEVEL    -> DEBUG / INFO / WARNING / ERROR / CRITICAL
    SERVICEFABRIC_JSON_LOGS    -> Render logs as JSON lines (default: false)
    SERVICEFABRIC_AUDIT_LOG    -> File receiving JSON audit lines for deletions
    SERVICEFABRIC_ENV_FILE     -> Optional .env file read by load_settings()

An empty endpoint is accepted here; the client rejects it with a
ConfigError when it is constructed, so the failure points at the client and
not at settings parsing.
"""

from __future__ import annotations

import os
from pathlib import Path  # noqa: TC003 - Required at runtime for Pydantic
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from servicefabric_client.utils.urls import DEFAULT_API_VERSION


class ClientSettings(BaseSettings):
    """
    Service Fabric client configuration.

    USAGE:
    ------
        settings = load_settings()
        with ServiceFabricClient.from_settings(settings) as client:
            apps = client.list_applications()
    """

    model_config = SettingsConfigDict(
        env_prefix="SERVICEFABRIC_",
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # CLUSTER CONNECTION
    # -------------------------------------------------------------------------

    endpoint: str = Field(
        default="",  # Empty string = not configured
        description="Service Fabric cluster management endpoint",
    )

    api_version: str = Field(
        default=DEFAULT_API_VERSION,
        description="Service Fabric REST API version sent as api-version",
    )
    # The cluster health probe always uses api-version=6.0, whatever is set here.

    timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP request timeout in seconds",
    )
    # Enforced by the transport. The client itself has no timeout or
    # cancellation; a long pagination loop blocks for all of its pages.

    # -------------------------------------------------------------------------
    # LOGGING
    # -------------------------------------------------------------------------

    log_level: Annotated[str, Field(pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")] = Field(
        default="INFO",
        description="Logging level",
    )

    json_logs: bool = Field(
        default=False,
        description="Render logs as JSON lines",
    )

    audit_log: Path | None = Field(
        default=None,
        description="Path to audit log file for delete operations",
    )

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """
        Ensure the endpoint has a scheme and no trailing slash.

        "mycluster:19080"         -> "https://mycluster:19080"
        "http://localhost:19080/" -> "http://localhost:19080"

        Request paths are joined with a "/" so a trailing slash here would
        produce "//" in every URL.
        """
        if not v:
            return v
        if not v.startswith(("http://", "https://")):
            v = f"https://{v}"
        return v.rstrip("/")


def load_settings() -> ClientSettings:
    """
    Load settings from environment with validation.

    If SERVICEFABRIC_ENV_FILE is set, additional variables are read from
    that file:

        SERVICEFABRIC_ENDPOINT=http://localhost:19080
        SERVICEFABRIC_LOG_LEVEL=DEBUG

    Raises:
        pydantic.ValidationError: If configuration is invalid.
    """
    return ClientSettings(
        _env_file=os.environ.get("SERVICEFABRIC_ENV_FILE"),
    )
