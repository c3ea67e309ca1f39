# ABOUTME: Error kinds raised by the Service Fabric client
# ABOUTME: Separates configuration, connectivity, status, empty-body and decode failures

"""
Structured Service Fabric client errors.

=============================================================================
WHY SEVERAL ERROR CLASSES?
=============================================================================

A single request can fail in very different places:

1. CONSTRUCTION: The client was configured without an endpoint
2. TRANSPORT: DNS, connection refused, timeout raised by the transport
3. STATUS: The cluster answered, but not with 200
4. EMPTY BODY: The cluster answered 200 with nothing in it
5. DECODING: The body was not the JSON (or XML) we expected

Callers usually want to treat these differently. A connectivity error may
be worth surfacing as "cluster unreachable", while an empty body signals
that the cluster broke its own contract. Every class derives from
ServiceFabricError so callers that do not care can catch just that one.

NOTE: "Not found" is never an error in this library. A missing name or a
missing extension comes back as a normal result value (False / empty).
"""

from __future__ import annotations


class ServiceFabricError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(ServiceFabricError):
    """Client constructed with invalid configuration (e.g. no endpoint)."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Service Fabric client configuration error: {self.message}"


class ConnectivityError(ServiceFabricError):
    """
    The transport itself failed before a status code was obtained.

    Always carries the URL that was attempted and the underlying exception,
    which is also chained as __cause__ by the raising code.
    """

    def __init__(self, url: str, cause: BaseException) -> None:
        self.url = url
        self.cause = cause
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Failed to connect to Service Fabric server on {self.url}: {self.cause}"


class UpstreamStatusError(ServiceFabricError):
    """The cluster responded with a status other than 200."""

    def __init__(self, status_code: int, url: str) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Service Fabric responded with error code {self.status_code} to request {self.url}"


class EmptyResponseError(ServiceFabricError):
    """The cluster responded 200 with an empty body."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Empty response body from Service Fabric for request {self.url}"


class DeserializationError(ServiceFabricError):
    """
    A response (or an embedded extension value) could not be decoded.

    Attributes:
        decoder: Which decoder failed, "json" or "xml"
        detail: The underlying parse failure, as text
    """

    def __init__(self, decoder: str, detail: str) -> None:
        self.decoder = decoder
        self.detail = detail
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.decoder == "xml":
            return f"Could not deserialise extension's XML value: {self.detail}"
        return f"Could not deserialise {self.decoder.upper()} response: {self.detail}"
