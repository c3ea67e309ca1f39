# ABOUTME: Service Fabric REST API client with continuation-token pagination
# ABOUTME: Provides a synchronous, transport-injectable interface with typed results

"""
Service Fabric REST API client.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

This module talks to the Service Fabric cluster management endpoint
(usually port 19080). It handles:

1. URL ASSEMBLY: Every call carries ?api-version=... plus optional params
2. TRANSPORT: One GET or POST per request through an injectable transport
3. ERROR MAPPING: Transport failure, non-200 status and empty bodies become
   distinct exceptions (see utils/errors.py)
4. PAGINATION: Paged listings are followed until the server stops
   returning a continuation token
5. DECODING: JSON pages into frozen dataclasses, XML extension values into
   label shapes

=============================================================================
SERVICE FABRIC REST API OVERVIEW
=============================================================================

Endpoints used by this client:

    GET  /Applications/                                  - List applications (paged)
    GET  /Applications/{app}/$/GetServices               - List services (paged)
    GET  /Services/{service}/$/GetPartitions             - List partitions (paged)
    GET  /Partitions/{partition}/$/GetReplicas           - List replicas (paged)
    GET  /ApplicationTypes/{type}/$/GetServiceTypes      - Service types of an app type
    GET  /$/GetClusterHealth                             - Health probe (api-version 6.0)
    GET  /Names/{name}                                   - Does a name exist?
    GET  /Names/{name}/$/GetProperties?IncludeValues=true - Properties (paged)
    POST /Applications/{app}/$/Delete                    - Delete application
    POST /Services/{service}/$/Delete                    - Delete service

Paged responses look like:

    {"ContinuationToken": "fabric:/App1", "Items": [...]}

and the next page is requested with ?continue=<token>. An empty (or
missing) token marks the last page.

=============================================================================
TRANSPORT
=============================================================================

The client never opens sockets itself. It calls a TRANSPORT:

    transport.perform("GET", url) -> (status_code, body_text)

which raises on network-level failure. HttpxTransport is the default,
built on httpx.Client. Tests (or applications with their own HTTP stack)
pass any object with a matching perform() method.

There are NO retries and NO backoff here: every failure reaches the caller
immediately. Timeouts belong to the transport.

=============================================================================
THREAD SAFETY
=============================================================================

After construction the client only holds immutable configuration (endpoint,
API version, transport, audit logger). Nothing is cached between calls, so
one client can serve concurrent callers as long as its transport can.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, TypeVar

import httpx
import structlog

from servicefabric_client.models import (
    ApplicationItem,
    InstanceItem,
    PartitionItem,
    Property,
    ReplicaItem,
    ServiceExtensionLabels,
    ServiceItem,
    ServiceType,
    replica_from_api_response,
)
from servicefabric_client.utils.decoding import decode_list, decode_page, decode_xml
from servicefabric_client.utils.errors import (
    ConfigError,
    ConnectivityError,
    EmptyResponseError,
    ServiceFabricError,
    UpstreamStatusError,
)
from servicefabric_client.utils.logging import AuditLogger
from servicefabric_client.utils.urls import (
    DEFAULT_API_VERSION,
    build_url,
    with_continue,
    with_param,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from servicefabric_client.config import ClientSettings
    from servicefabric_client.utils.decoding import X
    from servicefabric_client.utils.urls import QueryParam

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# The health endpoint is only served by the 6.0 API surface, independent of
# the version the client is configured with.
HEALTH_API_VERSION = "6.0"


# =============================================================================
# TRANSPORT
# =============================================================================


class Transport(Protocol):
    """
    Capability to perform one HTTP request.

    Implementations return (status_code, body_text) for ANY status and raise
    only when no response was obtained at all.
    """

    def perform(self, method: str, url: str) -> tuple[int, str]: ...


class HttpxTransport:
    """
    Default transport on a synchronous httpx.Client.

    Owns its httpx.Client (and therefore its connection pool) unless one is
    passed in. Use it as a context manager, or call close():

        with HttpxTransport(timeout=10.0) as transport:
            client = ServiceFabricClient("http://localhost:19080", transport=transport)
            ...
    """

    def __init__(self, timeout: float = 30.0, client: httpx.Client | None = None) -> None:
        """
        Args:
            timeout: Per-request timeout in seconds
            client: Pre-configured httpx.Client to use instead of creating
                    one (it is then NOT closed by this transport)
        """
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout)

    def perform(self, method: str, url: str) -> tuple[int, str]:
        response = self._client.request(method, url)
        return response.status_code, response.text

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> HttpxTransport:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


# =============================================================================
# SERVICE FABRIC CLIENT
# =============================================================================


class ServiceFabricClient:
    """
    Synchronous Service Fabric REST API client.

    LIFECYCLE:
    ----------
        with ServiceFabricClient("http://localhost:19080") as client:
            for app in client.list_applications():
                print(app.name, app.health_state)

    When no transport is given, the client creates an HttpxTransport and
    closes it on exit. An injected transport is left for its owner to close.

    ABSENCE IS NOT AN ERROR:
    ------------------------
    - get_properties() on a missing name returns (False, {})
    - get_service_extension() without a matching extension returns the
      shape's empty value
    Only transport, status, empty-body and decode problems raise.
    """

    def __init__(
        self,
        endpoint: str,
        api_version: str = "",
        transport: Transport | None = None,
        timeout: float = 30.0,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            endpoint: Cluster management endpoint, e.g. "http://localhost:19080"
            api_version: REST API version; "" means DEFAULT_API_VERSION ("3.0")
            transport: Object performing the HTTP calls; defaults to a new
                       HttpxTransport(timeout=timeout)
            timeout: Only used for the default transport
            audit_logger: Receives a record for every delete operation

        Raises:
            ConfigError: If endpoint is empty.
        """
        if not endpoint:
            raise ConfigError("endpoint missing for client configuration")

        self._endpoint = endpoint.rstrip("/")
        self._api_version = api_version or DEFAULT_API_VERSION
        self._owns_transport = transport is None
        self._transport: Transport = (
            transport if transport is not None else HttpxTransport(timeout=timeout)
        )
        self._audit_logger = audit_logger

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings,
        transport: Transport | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> ServiceFabricClient:
        """
        Build a client from loaded ClientSettings.

        When no audit_logger is passed and SERVICEFABRIC_AUDIT_LOG is set,
        deletions are audited to that file. Logging itself is configured
        separately, see configure_from_settings().
        """
        if audit_logger is None and settings.audit_log is not None:
            audit_logger = AuditLogger(settings.audit_log, cluster=settings.endpoint)
        return cls(
            endpoint=settings.endpoint,
            api_version=settings.api_version,
            transport=transport,
            timeout=settings.timeout,
            audit_logger=audit_logger,
        )

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def api_version(self) -> str:
        return self._api_version

    def close(self) -> None:
        if self._owns_transport and isinstance(self._transport, HttpxTransport):
            self._transport.close()

    def __enter__(self) -> ServiceFabricClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # =========================================================================
    # TRANSPORT ADAPTER
    # =========================================================================

    def _url(self, base_path: str, *params: QueryParam, api_version: str | None = None) -> str:
        return build_url(self._endpoint, base_path, api_version or self._api_version, *params)

    def _perform(self, method: str, url: str) -> tuple[int, str]:
        """
        Run one request through the transport.

        Raises:
            ConnectivityError: The transport could not obtain a response.
        """
        log = logger.bind(method=method, url=url)
        log.debug("Service Fabric request")
        try:
            status, text = self._transport.perform(method, url)
        except Exception as e:
            # Any transport, not only httpx: whatever it raises means no response
            log.warning("Service Fabric connection failed", error=str(e))
            raise ConnectivityError(url, e) from e
        log.debug("Service Fabric response", status=status, size=len(text))
        return status, text

    def _checked(self, method: str, url: str) -> bytes:
        """
        Perform a request that must answer 200 with a non-empty body.

        Raises:
            ConnectivityError: Transport failure
            UpstreamStatusError: Status other than 200
            EmptyResponseError: 200 with an empty body
        """
        status, text = self._perform(method, url)
        if status != httpx.codes.OK:
            logger.warning("Service Fabric error status", method=method, url=url, status=status)
            raise UpstreamStatusError(status, url)
        if not text:
            raise EmptyResponseError(url)
        return text.encode()

    def _fetch_body(self, base_path: str, *params: QueryParam) -> bytes:
        return self._checked("GET", self._url(base_path, *params))

    def _post_body(self, base_path: str, *params: QueryParam) -> bytes:
        # No request payload; the operation is fully described by the URL.
        return self._checked("POST", self._url(base_path, *params))

    def _fetch_status(self, base_path: str, api_version: str | None = None) -> int:
        """
        GET a path and return its status code, whatever it is.

        Used by probes where only "200 or not" matters; a 404 and a 503 are
        both just "not 200" to the caller.
        """
        status, _ = self._perform("GET", self._url(base_path, api_version=api_version))
        return status

    # =========================================================================
    # PAGINATION
    # =========================================================================

    def _paginate(
        self,
        base_path: str,
        item_factory: Callable[[dict[str, Any]], T],
        *params: QueryParam,
        items_key: str = "Items",
    ) -> list[T]:
        """
        Fetch every page of a paged listing and concatenate the items.

        HOW IT WORKS:
        -------------
        1. Fetch with no "continue" parameter
        2. Append the page's items to the result, in order
        3. If the page carried a continuation token, fetch again with
           ?continue=<token>; otherwise stop

        Items are neither de-duplicated nor re-ordered. The first error
        aborts the whole listing; partial results are discarded.

        The loop has no page limit. A server that keeps returning a
        non-empty token keeps this call running.

        Args:
            base_path: Listing path, e.g. "Applications/"
            item_factory: Builds one item from its JSON object
            *params: Extra query parameters, appended after "continue"
            items_key: JSON array holding the items
        """
        items: list[T] = []
        token = ""
        pages = 0
        while True:
            raw = self._fetch_body(base_path, with_continue(token), *params)
            page = decode_page(raw, item_factory, items_key=items_key)
            pages += 1
            items.extend(page.items)

            token = page.continuation_token
            if not token:
                break

        logger.debug("Listing complete", path=base_path, pages=pages, items=len(items))
        return items

    # =========================================================================
    # APPLICATIONS, SERVICES, PARTITIONS, REPLICAS
    # =========================================================================

    def list_applications(self) -> list[ApplicationItem]:
        """
        List every application in the cluster.

        Service Fabric API: GET /Applications/ (paged)
        """
        return self._paginate("Applications/", ApplicationItem.from_api_response)

    def list_services(self, app_name: str) -> list[ServiceItem]:
        """
        List the services of one application.

        Service Fabric API: GET /Applications/{app_name}/$/GetServices (paged)

        Args:
            app_name: Application ID, e.g. "samples~CalculatorApp"
        """
        return self._paginate(
            f"Applications/{app_name}/$/GetServices", ServiceItem.from_api_response
        )

    def list_partitions(self, service_id: str) -> list[PartitionItem]:
        """
        List the partitions of one service.

        Service Fabric API: GET /Services/{service_id}/$/GetPartitions (paged)
        """
        return self._paginate(
            f"Services/{service_id}/$/GetPartitions", PartitionItem.from_api_response
        )

    def list_replicas(self, partition_id: str) -> list[ReplicaItem | InstanceItem]:
        """
        List the replicas (stateful) or instances (stateless) of a partition.

        Service Fabric API: GET /Partitions/{partition_id}/$/GetReplicas (paged)

        Both variants expose replica_data() -> (id, ReplicaItemBase), so
        callers that do not care which kind they got can treat them alike.
        """
        return self._paginate(
            f"Partitions/{partition_id}/$/GetReplicas", replica_from_api_response
        )

    # =========================================================================
    # HEALTH AND DELETION
    # =========================================================================

    def get_cluster_health(self) -> bool:
        """
        Probe the cluster health endpoint.

        Service Fabric API: GET /$/GetClusterHealth?api-version=6.0

        Returns:
            True iff the probe answered 200. The body is not inspected.

        Raises:
            ConnectivityError: If the cluster could not be reached.
        """
        status = self._fetch_status("$/GetClusterHealth", api_version=HEALTH_API_VERSION)
        return status == httpx.codes.OK

    def delete_application(self, application_id: str) -> bool:
        """
        Delete an application.

        Service Fabric API: POST /Applications/{application_id}/$/Delete

        Returns:
            True once the cluster accepted the deletion.

        Raises:
            UpstreamStatusError: The cluster refused (non-200)
            EmptyResponseError: The cluster answered 200 without a body
            ConnectivityError: The cluster could not be reached
        """
        return self._delete(
            "delete_application", f"Applications/{application_id}/$/Delete", application_id
        )

    def delete_service(self, service_id: str) -> bool:
        """
        Delete a service.

        Service Fabric API: POST /Services/{service_id}/$/Delete

        Same result and errors as delete_application().
        """
        return self._delete("delete_service", f"Services/{service_id}/$/Delete", service_id)

    def _delete(self, action: str, base_path: str, target: str) -> bool:
        try:
            self._post_body(base_path)
        except ServiceFabricError as e:
            if self._audit_logger:
                self._audit_logger.log_error(action, target, e)
            raise

        if self._audit_logger:
            self._audit_logger.log_write(action, target, "success")
        logger.info("Deleted", action=action, target=target)
        return True

    # =========================================================================
    # SERVICE TYPES AND EXTENSIONS
    # =========================================================================

    def get_service_types(self, app_type: str, app_version: str) -> list[ServiceType]:
        """
        List the service types of an application type version.

        Service Fabric API:
            GET /ApplicationTypes/{app_type}/$/GetServiceTypes?ApplicationTypeVersion=...

        Not paged: the response is a plain JSON array.
        """
        raw = self._fetch_body(
            f"ApplicationTypes/{app_type}/$/GetServiceTypes",
            with_param("ApplicationTypeVersion", app_version),
        )
        return decode_list(raw, ServiceType.from_api_response)

    def get_service_extension(
        self,
        app_type: str,
        app_version: str,
        service_type_name: str,
        extension_key: str,
        shape: type[X] = ServiceExtensionLabels,  # type: ignore[assignment]
    ) -> X:
        """
        Decode one XML-valued extension of a service type.

        SEARCH ORDER:
        -------------
        1. Service types whose name equals service_type_name (exact match)
        2. Within those, extensions whose key equals extension_key,
           ignoring case
        3. The FIRST match is decoded into shape via shape.from_xml()

        An extension is optional metadata, so "not found" is a normal
        outcome: the method then returns shape() (the empty value) rather
        than raising.

        Args:
            app_type: Application type name
            app_version: Application type version
            service_type_name: Service type to look in
            extension_key: Extension name, e.g. "Labels"
            shape: Class with a from_xml(text) classmethod and a no-argument
                   constructor; ServiceExtensionLabels by default

        Raises:
            DeserializationError: The service types JSON or the matching
                                  extension's XML could not be decoded
        """
        wanted = extension_key.casefold()
        for service_type in self.get_service_types(app_type, app_version):
            description = service_type.service_type_description
            if description.service_type_name != service_type_name:
                continue
            for extension in description.extensions:
                if extension.key.casefold() == wanted:
                    return decode_xml(extension.value, shape)

        logger.debug(
            "Service extension not found",
            app_type=app_type,
            service_type=service_type_name,
            extension=extension_key,
        )
        return shape()

    def get_service_extension_map(
        self,
        service: ServiceItem,
        app: ApplicationItem,
        extension_key: str,
    ) -> dict[str, str]:
        """
        Read a labels extension of a service as a {key: value} dict.

        The application supplies the type name and version, the service
        supplies the service type name. A missing extension yields {}.

        Example:
            Extension value: <Labels><Label Key="env">prod</Label></Labels>
            Result:          {"env": "prod"}
        """
        labels = self.get_service_extension(
            app.type_name,
            app.type_version,
            service.type_name,
            extension_key,
            ServiceExtensionLabels,
        )
        return labels.as_dict()

    # =========================================================================
    # NAMING SERVICE PROPERTIES
    # =========================================================================

    def name_exists(self, name: str) -> bool:
        """
        Check whether a Service Fabric name exists.

        Service Fabric API: GET /Names/{name}

        Any status other than 200 counts as "does not exist".
        """
        return self._fetch_status(f"Names/{name}") == httpx.codes.OK

    def get_properties(self, name: str) -> tuple[bool, dict[str, str]]:
        """
        Read the String-kind properties stored under a name.

        Service Fabric API: GET /Names/{name}/$/GetProperties?IncludeValues=true (paged)

        Properties of any other kind (Int64, Double, Binary, Guid) are
        skipped. A property name repeated across pages keeps its last value.

        Args:
            name: Name path without the "fabric:/" prefix, e.g. "samples/config"

        Returns:
            (False, {}) if the name does not exist (no properties fetched);
            (True, {property_name: data}) otherwise.
        """
        if not self.name_exists(name):
            return False, {}

        properties = self._paginate(
            f"Names/{name}/$/GetProperties",
            Property.from_api_response,
            with_param("IncludeValues", "true"),
            items_key="Properties",
        )
        return True, {
            prop.name: prop.value.data for prop in properties if prop.value.kind == "String"
        }
