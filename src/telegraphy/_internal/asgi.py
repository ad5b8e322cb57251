"""Typed ASGI definitions.

Raw ASGI aliases plus a frozen view of the HTTP scope fields the RPC
endpoint reads. Internal only; context builders receive the raw scope.
"""

from collections.abc import Awaitable, Callable, MutableMapping
from dataclasses import dataclass
from typing import Any, TypeAlias

# Raw ASGI 3 types
Scope: TypeAlias = MutableMapping[str, Any]
Receive: TypeAlias = Callable[[], Awaitable[MutableMapping[str, Any]]]
Send: TypeAlias = Callable[[MutableMapping[str, Any]], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class HTTPScope:
    """The parts of an HTTP scope the RPC endpoint cares about."""

    method: str
    path: str
    root_path: str
    headers: tuple[tuple[bytes, bytes], ...]

    @classmethod
    def from_scope(cls, scope: Scope) -> "HTTPScope":
        """Parse raw ASGI scope into typed object."""
        return cls(
            method=scope.get("method", "GET").upper(),
            path=scope.get("path", "/"),
            root_path=scope.get("root_path", ""),
            headers=tuple(scope.get("headers", ())),
        )

    def header(self, name: str) -> str | None:
        """Return the first header named *name* (case-insensitive), decoded as latin-1."""
        wanted = name.lower().encode("latin-1")
        for key, value in self.headers:
            if key.lower() == wanted:
                return value.decode("latin-1")
        return None
