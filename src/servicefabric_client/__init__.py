# ABOUTME: Service Fabric client package initialization
# ABOUTME: Exposes the client, its error kinds and version information

"""
servicefabric-client - typed access to the Service Fabric management REST API.

=============================================================================
PACKAGE STRUCTURE OVERVIEW
=============================================================================

servicefabric_client/
├── __init__.py          <- YOU ARE HERE: Package entry point
├── config.py            <- Settings from SERVICEFABRIC_* environment variables
├── models.py            <- Frozen dataclasses for API responses
└── utils/
    ├── __init__.py      <- Utils subpackage marker
    ├── client.py        <- ServiceFabricClient, transports, pagination
    ├── decoding.py      <- JSON and XML response decoders
    ├── errors.py        <- Error kinds
    ├── logging.py       <- Structured logging and audit trail
    └── urls.py          <- Request URL builder

Typical use:

    >>> from servicefabric_client import ServiceFabricClient
    >>> with ServiceFabricClient("http://localhost:19080") as client:
    ...     exists, props = client.get_properties("samples/config")
"""

from servicefabric_client.utils.client import HttpxTransport, ServiceFabricClient, Transport
from servicefabric_client.utils.errors import (
    ConfigError,
    ConnectivityError,
    DeserializationError,
    EmptyResponseError,
    ServiceFabricError,
    UpstreamStatusError,
)

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "ConnectivityError",
    "DeserializationError",
    "EmptyResponseError",
    "HttpxTransport",
    "ServiceFabricClient",
    "ServiceFabricError",
    "Transport",
    "UpstreamStatusError",
    "__version__",
]
