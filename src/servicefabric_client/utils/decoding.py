# ABOUTME: Response decoders for the Service Fabric client
# ABOUTME: JSON page/list decoding and XML extension decoding with uniform errors

"""
Response decoders.

All decode failures surface as DeserializationError, tagged with the decoder
that failed ("json" or "xml") and the underlying parse detail. That keeps
them distinct from transport and status errors, which are raised before any
decoding is attempted.
"""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

from servicefabric_client.models import Page
from servicefabric_client.utils.errors import DeserializationError

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")
X = TypeVar("X", bound="XmlDecodable")


class XmlDecodable(Protocol):
    """A shape that can be built from an XML string."""

    @classmethod
    def from_xml(cls: type[X], text: str) -> X: ...


def decode_json(raw: bytes) -> Any:
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DeserializationError("json", str(e)) from e


def _build_items(values: Any, key: str, item_factory: Callable[[dict[str, Any]], T]) -> list[T]:
    if values is None:
        return []
    if not isinstance(values, list):
        raise DeserializationError("json", f"{key!r} must be an array, got {type(values).__name__}")

    items: list[T] = []
    for value in values:
        if not isinstance(value, dict):
            raise DeserializationError(
                "json", f"{key!r} entries must be objects, got {type(value).__name__}"
            )
        try:
            items.append(item_factory(value))
        except (TypeError, ValueError) as e:
            raise DeserializationError("json", str(e)) from e
    return items


def decode_page(
    raw: bytes,
    item_factory: Callable[[dict[str, Any]], T],
    items_key: str = "Items",
) -> Page[T]:
    """
    Decode one page of a paged listing.

    Args:
        raw: Response body
        item_factory: Builds one item from its JSON object
        items_key: Name of the array holding the items ("Items" for most
                   listings, "Properties" for GetProperties)

    Raises:
        DeserializationError: Invalid JSON or unexpected structure
    """
    data = decode_json(raw)
    if not isinstance(data, dict):
        raise DeserializationError("json", f"expected an object, got {type(data).__name__}")

    token = data.get("ContinuationToken")
    if token is not None and not isinstance(token, str):
        raise DeserializationError(
            "json", f"'ContinuationToken' must be a string, got {type(token).__name__}"
        )
    consistent = data.get("IsConsistent", True)
    if not isinstance(consistent, bool):
        raise DeserializationError(
            "json", f"'IsConsistent' must be a boolean, got {type(consistent).__name__}"
        )

    return Page(
        items=tuple(_build_items(data.get(items_key), items_key, item_factory)),
        continuation_token=token or "",
        is_consistent=consistent,
    )


def decode_list(raw: bytes, item_factory: Callable[[dict[str, Any]], T]) -> list[T]:
    """Decode a response whose top level is a JSON array of objects."""
    return _build_items(decode_json(raw), "response", item_factory)


def decode_xml(text: str, shape: type[X]) -> X:
    """
    Decode an XML string into ``shape``.

    Raises:
        DeserializationError: Malformed XML or a document the shape rejects
    """
    try:
        return shape.from_xml(text)
    except (ET.ParseError, ValueError) as e:
        raise DeserializationError("xml", str(e)) from e
