"""Telegraphy exception hierarchy.

Shared across the remote proxy, route, router, cables and the ASGI
endpoint so every module raises and catches the same types.

Errors raised by feature implementations are never wrapped: they travel
through the same failure channel untouched.
"""

from dataclasses import dataclass
from typing import Literal

type Side = Literal["client", "server"]
type Phase = Literal["input", "output", "envelope"]


class TelegraphyError(Exception):
    """Base for all telegraphy-specific errors."""


class ConfigurationError(TelegraphyError):
    """Raised when required setup is missing or malformed.

    Always raised at construction time (building a feature, a router,
    or a cable), never in the middle of a call.
    """


class AuthenticationError(TelegraphyError):
    """Raised by a cable when no usable credential is available."""


@dataclass(frozen=True, slots=True)
class SchemaIssue:
    """One problem found while validating a value.

    ``path`` locates the offending field inside the value, e.g.
    ``("items", 0, "quantity")``. An empty path means the value itself.
    """

    path: tuple[str | int, ...]
    message: str

    @property
    def location(self) -> str:
        if not self.path:
            return "<root>"
        return ".".join(str(part) for part in self.path)

    def under(self, prefix: tuple[str | int, ...]) -> "SchemaIssue":
        """Return the same issue nested below *prefix*."""
        return SchemaIssue(path=prefix + self.path, message=self.message)

    def __str__(self) -> str:
        return f"{self.location}: {self.message}"


class SchemaError(TelegraphyError):
    """Raised by a schema when a value does not conform.

    Carries every issue found, so object schemas can report all bad
    fields at once instead of stopping at the first.
    """

    def __init__(self, issues: tuple[SchemaIssue, ...] | list[SchemaIssue]) -> None:
        self.issues = tuple(issues)
        super().__init__("; ".join(str(issue) for issue in self.issues))


@dataclass(frozen=True, slots=True)
class ValidationError(TelegraphyError):
    """A value failed its schema check on the way in or out of a call.

    ``side`` is where the check ran (``client`` for the remote proxy,
    ``server`` for routes and the router). ``phase`` is what was being
    checked: the call ``input``, the returned ``output``, or the wire
    ``envelope``.
    """

    side: Side
    phase: Phase
    issues: tuple[SchemaIssue, ...] = ()
    feature: str | None = None
    method: str | None = None

    @property
    def target(self) -> str | None:
        if self.feature and self.method:
            return f"{self.feature}.{self.method}"
        return self.feature or self.method

    def __str__(self) -> str:
        target = self.target
        if target:
            head = f"Invalid {self.phase} for {target} ({self.side})"
        else:
            head = f"Invalid {self.phase} ({self.side})"
        if not self.issues:
            return head
        details = "; ".join(str(issue) for issue in self.issues)
        return f"{head}: {details}"


class NotFound(TelegraphyError):  # noqa: N818
    """Unknown feature, unknown method, or a missing implementation binding."""


class MethodNotDeclared(NotFound):
    """A remote proxy was asked for a method its feature does not declare."""

    def __init__(self, feature: str, method: str) -> None:
        self.feature = feature
        self.method = method
        super().__init__(f"Method {method!r} is not declared by feature {feature!r}")


@dataclass(frozen=True, slots=True)
class TransportError(TelegraphyError):
    """A cable could not complete a call.

    ``status`` is the HTTP status for non-success responses and ``None``
    for network failures. ``code`` is the error code reported by a
    telegraphy server, when the response carried one.
    """

    feature: str
    method: str
    status: int | None = None
    detail: str = ""
    code: str | None = None

    def __str__(self) -> str:
        return f"Failed to call {self.feature}.{self.method}: {self.detail}"
