# ABOUTME: Request URL assembly for the Service Fabric REST API
# ABOUTME: Builds {endpoint}/{path}?api-version=...&... from parameter injectors

"""
URL builder and query-parameter injectors.

Every Service Fabric REST call carries ``api-version`` as its first query
parameter. Anything else is contributed by small "injector" callables that
take the parameter list built so far and return it extended (or untouched):

    build_url(
        "https://sf.example.com:19080",
        "Names/samples/$/GetProperties",
        "3.0",
        with_continue(token),
        with_param("IncludeValues", "true"),
    )
    # https://sf.example.com:19080/Names/samples/$/GetProperties?api-version=3.0&IncludeValues=true
    # (no "continue=" at all while the token is empty)
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import quote

if TYPE_CHECKING:
    from collections.abc import Callable

    QueryParam = Callable[[list[str]], list[str]]

DEFAULT_API_VERSION = "3.0"


def no_op(params: list[str]) -> list[str]:
    """Injector that adds nothing."""
    return params


def with_param(name: str, value: str) -> QueryParam:
    """Return an injector appending ``name=value`` (value percent-encoded)."""

    def inject(params: list[str]) -> list[str]:
        return [*params, f"{name}={quote(value, safe='')}"]

    return inject


def with_continue(token: str) -> QueryParam:
    """Return the ``continue`` injector, or a no-op while the token is empty."""
    if not token:
        return no_op
    return with_param("continue", token)


def build_url(endpoint: str, base_path: str, api_version: str, *params: QueryParam) -> str:
    """Assemble the absolute request URL."""
    query = [f"api-version={api_version}"]
    for inject in params:
        query = inject(query)
    return f"{endpoint}/{base_path}?{'&'.join(query)}"
