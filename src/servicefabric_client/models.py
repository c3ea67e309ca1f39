# ABOUTME: Immutable data model for Service Fabric REST API responses
# ABOUTME: Frozen dataclasses built from decoded JSON (and one XML shape)

"""
Service Fabric data model.

Every class here is a FROZEN DATACLASS: a read-only snapshot of remote
cluster state that lives only as long as the call that returned it. Nothing
in this package mutates or caches them.

Each JSON-backed class has a ``from_api_response`` factory that maps the
PascalCase JSON keys Service Fabric uses onto snake_case fields. Missing keys
fall back to the zero value ("" / 0 / False / empty tuple), the same way an
absent field is simply left blank by the cluster. A key that is present but
of the wrong JSON type raises TypeError or ValueError, which the decoders
turn into a DeserializationError.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Generic, Protocol, TypeVar

T = TypeVar("T")


# =============================================================================
# FIELD HELPERS
# =============================================================================


def _obj(data: dict[str, Any], key: str) -> dict[str, Any]:
    """Return a nested JSON object, {} when absent or null."""
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"field {key!r} must be an object, got {type(value).__name__}")
    return value


def _seq(data: dict[str, Any], key: str) -> list[Any]:
    """Return a nested JSON array, [] when absent or null."""
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"field {key!r} must be an array, got {type(value).__name__}")
    return value


def _str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"field {key!r} must be a string, got {type(value).__name__}")
    return value


def _int(data: dict[str, Any], key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    # bool is an int subclass; reject it like any other non-number
    if isinstance(value, bool) or not isinstance(value, int | str):
        raise TypeError(f"field {key!r} must be an integer, got {type(value).__name__}")
    return int(value)


def _bool(data: dict[str, Any], key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise TypeError(f"field {key!r} must be a boolean, got {type(value).__name__}")
    return value


# =============================================================================
# PAGES
# =============================================================================


@dataclass(frozen=True)
class Page(Generic[T]):
    """
    One page of a paged Service Fabric listing.

    A non-empty continuation_token means the server has more items; an
    empty one ends the sequence. Service Fabric sends either a missing key,
    null or "" for the last page; all three become "".

    is_consistent is only reported by the property listing endpoint.
    """

    items: tuple[T, ...] = ()
    continuation_token: str = ""
    is_consistent: bool = True


# =============================================================================
# APPLICATIONS AND SERVICES
# =============================================================================


@dataclass(frozen=True)
class AppParameter:
    key: str
    value: str

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> AppParameter:
        return cls(key=_str(data, "Key"), value=_str(data, "Value"))


@dataclass(frozen=True)
class ApplicationItem:
    """
    An application instance running in the cluster.

    Fields:
        id: Application ID, e.g. "samples~CalculatorApp"
        name: Full application name, e.g. "fabric:/samples/CalculatorApp"
        type_name / type_version: The application type it was created from
        status: "Ready", "Upgrading", "Creating", "Deleting", "Failed", ...
        health_state: "Ok", "Warning", "Error", "Unknown"
        parameters: Ordered application parameter overrides

    status and health_state are passed through as received; the client does
    not check them against a closed set of values.
    """

    id: str
    name: str
    type_name: str
    type_version: str
    status: str
    health_state: str
    parameters: tuple[AppParameter, ...] = ()

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> ApplicationItem:
        return cls(
            id=_str(data, "Id"),
            name=_str(data, "Name"),
            type_name=_str(data, "TypeName"),
            type_version=_str(data, "TypeVersion"),
            status=_str(data, "Status"),
            health_state=_str(data, "HealthState"),
            parameters=tuple(AppParameter.from_api_response(p) for p in _seq(data, "Parameters")),
        )


@dataclass(frozen=True)
class ServiceItem:
    """A service belonging to an application."""

    id: str
    name: str
    type_name: str
    manifest_version: str
    service_kind: str
    service_status: str
    health_state: str
    has_persisted_state: bool = False
    is_service_group: bool = False

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> ServiceItem:
        return cls(
            id=_str(data, "Id"),
            name=_str(data, "Name"),
            type_name=_str(data, "TypeName"),
            manifest_version=_str(data, "ManifestVersion"),
            service_kind=_str(data, "ServiceKind"),
            service_status=_str(data, "ServiceStatus"),
            health_state=_str(data, "HealthState"),
            has_persisted_state=_bool(data, "HasPersistedState"),
            is_service_group=_bool(data, "IsServiceGroup"),
        )


# =============================================================================
# PARTITIONS
# =============================================================================


@dataclass(frozen=True)
class PartitionInformation:
    """Partition identity plus its key range (empty for singleton partitions)."""

    id: str
    low_key: str
    high_key: str
    service_partition_kind: str

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> PartitionInformation:
        return cls(
            id=_str(data, "Id"),
            low_key=_str(data, "LowKey"),
            high_key=_str(data, "HighKey"),
            service_partition_kind=_str(data, "ServicePartitionKind"),
        )


@dataclass(frozen=True)
class ConfigurationEpoch:
    # Both are 64-bit numbers serialized as strings; kept opaque
    configuration_version: str
    data_loss_version: str

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> ConfigurationEpoch:
        return cls(
            configuration_version=_str(data, "ConfigurationVersion"),
            data_loss_version=_str(data, "DataLossVersion"),
        )


@dataclass(frozen=True)
class PartitionItem:
    partition_information: PartitionInformation
    service_kind: str
    min_replica_set_size: int
    target_replica_set_size: int
    current_configuration_epoch: ConfigurationEpoch
    health_state: str
    partition_status: str

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> PartitionItem:
        return cls(
            partition_information=PartitionInformation.from_api_response(
                _obj(data, "PartitionInformation")
            ),
            service_kind=_str(data, "ServiceKind"),
            min_replica_set_size=_int(data, "MinReplicaSetSize"),
            target_replica_set_size=_int(data, "TargetReplicaSetSize"),
            current_configuration_epoch=ConfigurationEpoch.from_api_response(
                _obj(data, "CurrentConfigurationEpoch")
            ),
            health_state=_str(data, "HealthState"),
            partition_status=_str(data, "PartitionStatus"),
        )


# =============================================================================
# REPLICAS AND INSTANCES
# =============================================================================
#
# A stateful service partition has REPLICAS (identified by ReplicaId), a
# stateless one has INSTANCES (identified by InstanceId). Everything else
# about them is the same, so both variants hold a ReplicaItemBase and expose
# it through the same replica_data() accessor. They are not
# subclasses of each other or of the base.


@dataclass(frozen=True)
class ReplicaItemBase:
    address: str
    node_name: str
    replica_role: str
    replica_status: str
    health_state: str
    service_kind: str
    last_in_build_duration_in_seconds: str

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> ReplicaItemBase:
        return cls(
            address=_str(data, "Address"),
            node_name=_str(data, "NodeName"),
            replica_role=_str(data, "ReplicaRole"),
            replica_status=_str(data, "ReplicaStatus"),
            health_state=_str(data, "HealthState"),
            service_kind=_str(data, "ServiceKind"),
            last_in_build_duration_in_seconds=_str(data, "LastInBuildDurationInSeconds"),
        )


class ReplicaLike(Protocol):
    """Anything that can report its identifier plus the shared replica fields."""

    def replica_data(self) -> tuple[str, ReplicaItemBase]: ...


@dataclass(frozen=True)
class ReplicaItem:
    """A replica of a stateful service partition."""

    replica_id: str
    base: ReplicaItemBase

    def replica_data(self) -> tuple[str, ReplicaItemBase]:
        return self.replica_id, self.base

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> ReplicaItem:
        return cls(
            replica_id=_str(data, "ReplicaId"), base=ReplicaItemBase.from_api_response(data)
        )


@dataclass(frozen=True)
class InstanceItem:
    """An instance of a stateless service partition."""

    instance_id: str
    base: ReplicaItemBase

    def replica_data(self) -> tuple[str, ReplicaItemBase]:
        return self.instance_id, self.base

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> InstanceItem:
        return cls(
            instance_id=_str(data, "InstanceId"), base=ReplicaItemBase.from_api_response(data)
        )


def replica_from_api_response(data: dict[str, Any]) -> ReplicaItem | InstanceItem:
    """
    Pick the variant for one entry of a GetReplicas page.

    ServiceKind decides when present; otherwise the identifier key that is
    actually in the payload does.
    """
    kind = _str(data, "ServiceKind")
    if kind == "Stateless" or (not kind and "InstanceId" in data and "ReplicaId" not in data):
        return InstanceItem.from_api_response(data)
    return ReplicaItem.from_api_response(data)


# =============================================================================
# SERVICE TYPES
# =============================================================================


@dataclass(frozen=True)
class KeyValuePair:
    key: str
    value: str

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> KeyValuePair:
        return cls(key=_str(data, "Key"), value=_str(data, "Value"))


@dataclass(frozen=True)
class ServiceTypeDescription:
    """
    Service type metadata from the service manifest.

    extensions is the ordered list of manifest <Extension> entries. Their
    values are opaque strings; for some well-known keys the value is itself
    an XML document (see ServiceExtensionLabels).
    """

    service_type_name: str
    kind: str
    is_stateful: bool = False
    has_persisted_state: bool = False
    placement_constraints: str = ""
    extensions: tuple[KeyValuePair, ...] = ()
    load_metrics: tuple[Any, ...] = ()
    service_placement_policies: tuple[Any, ...] = ()

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> ServiceTypeDescription:
        return cls(
            service_type_name=_str(data, "ServiceTypeName"),
            kind=_str(data, "Kind"),
            is_stateful=_bool(data, "IsStateful"),
            has_persisted_state=_bool(data, "HasPersistedState"),
            placement_constraints=_str(data, "PlacementConstraints"),
            extensions=tuple(KeyValuePair.from_api_response(e) for e in _seq(data, "Extensions")),
            load_metrics=tuple(_seq(data, "LoadMetrics")),
            service_placement_policies=tuple(_seq(data, "ServicePlacementPolicies")),
        )


@dataclass(frozen=True)
class ServiceType:
    service_type_description: ServiceTypeDescription
    service_manifest_name: str = ""
    service_manifest_version: str = ""
    is_service_group: bool = False

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> ServiceType:
        return cls(
            service_type_description=ServiceTypeDescription.from_api_response(
                _obj(data, "ServiceTypeDescription")
            ),
            service_manifest_name=_str(data, "ServiceManifestName"),
            service_manifest_version=_str(data, "ServiceManifestVersion"),
            is_service_group=_bool(data, "IsServiceGroup"),
        )


# =============================================================================
# NAMING SERVICE PROPERTIES
# =============================================================================


@dataclass(frozen=True)
class Metadata:
    type_id: str = ""
    custom_type_id: str = ""
    parent: str = ""
    size_in_bytes: int = 0
    last_modified_utc_timestamp: str = ""
    sequence_number: str = ""

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> Metadata:
        return cls(
            type_id=_str(data, "TypeId"),
            custom_type_id=_str(data, "CustomTypeId"),
            parent=_str(data, "Parent"),
            size_in_bytes=_int(data, "SizeInBytes"),
            last_modified_utc_timestamp=_str(data, "LastModifiedUtcTimestamp"),
            sequence_number=_str(data, "SequenceNumber"),
        )


@dataclass(frozen=True)
class PropValue:
    """
    Property value: Kind is "String", "Int64", "Double", "Binary" or "Guid".

    Only String data is checked (and always a str). Every other kind keeps
    Data exactly as decoded: Int64 as a string or number, Binary as a list
    of byte values, and so on.
    """

    kind: str
    data: Any

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> PropValue:
        kind = _str(data, "Kind")
        if kind == "String":
            return cls(kind=kind, data=_str(data, "Data"))
        return cls(kind=kind, data=data.get("Data"))


@dataclass(frozen=True)
class Property:
    name: str
    value: PropValue
    metadata: Metadata = field(default_factory=Metadata)

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> Property:
        return cls(
            name=_str(data, "Name"),
            value=PropValue.from_api_response(_obj(data, "Value")),
            metadata=Metadata.from_api_response(_obj(data, "Metadata")),
        )


# =============================================================================
# SERVICE EXTENSION LABELS (XML)
# =============================================================================


def _local_name(tag: str) -> str:
    # Manifests usually declare a default namespace: "{http://...}Labels"
    return tag.rpartition("}")[2]


@dataclass(frozen=True)
class Label:
    key: str
    value: str


@dataclass(frozen=True)
class ServiceExtensionLabels:
    """
    Decoded form of a labels extension value:

        <Labels>
          <Label Key="env">prod</Label>
          <Label Key="team">payments</Label>
        </Labels>

    ServiceExtensionLabels() with no labels is the "nothing found" value.
    """

    labels: tuple[Label, ...] = ()

    @classmethod
    def from_xml(cls, text: str) -> ServiceExtensionLabels:
        """
        Parse the XML blob.

        Raises:
            xml.etree.ElementTree.ParseError: Malformed XML
            ValueError: Root element is not <Labels> in any namespace
        """
        root = ET.fromstring(text)
        if _local_name(root.tag) != "Labels":
            raise ValueError(f"expected element type <Labels> but have <{root.tag}>")
        return cls(
            labels=tuple(
                Label(key=node.get("Key", ""), value=node.text or "")
                for node in root
                if _local_name(node.tag) == "Label"
            )
        )

    def as_dict(self) -> dict[str, str]:
        """Flatten to {key: value}; a repeated key keeps its last value."""
        return {label.key: label.value for label in self.labels}
