"""The call envelope and the JSON codec shared by both ends of a cable.

An envelope is the only payload that ever crosses a cable::

    {"feature": "crew", "method": "getOfficer", "input": {"id": 1}}

Routes answer with the canonical JSON text of their validated output,
so every response body is uniform regardless of feature.
"""

import dataclasses
import enum
import json
from dataclasses import dataclass
from typing import Any

from telegraphy.errors import SchemaError, SchemaIssue, ValidationError
from telegraphy.schema import obj, optional, run_schema, string, unknown

ENVELOPE_SCHEMA = obj({
    "feature": string,
    "method": string,
    "input": optional(unknown),
})


@dataclass(frozen=True, slots=True)
class Envelope:
    """One call on the wire: which feature, which method, what input."""

    feature: str
    method: str
    input: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"feature": self.feature, "method": self.method, "input": self.input}


def parse_envelope(payload: Any) -> Envelope:
    """Validate a raw payload into an ``Envelope``.

    Raises ``ValidationError`` (server side, envelope phase) when the
    payload is not an object with string ``feature`` and ``method``.
    """
    try:
        data = run_schema(ENVELOPE_SCHEMA, payload)
    except SchemaError as exc:
        raise ValidationError(side="server", phase="envelope", issues=exc.issues) from exc
    return Envelope(feature=data["feature"], method=data["method"], input=data.get("input"))


def _default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, tuple | set | frozenset):
        return list(value)
    if isinstance(value, enum.Enum):
        return value.value
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


def encode(value: Any) -> str:
    """Serialize *value* to canonical JSON text.

    Compact separators, no ASCII escaping, and no ``NaN``/``Infinity``.
    Dataclass instances are written as objects, enum members as their values.
    """
    return json.dumps(
        value,
        default=_default,
        ensure_ascii=False,
        allow_nan=False,
        separators=(",", ":"),
    )


def encode_output(value: Any, *, feature: str, method: str) -> str:
    """Serialize a route's validated output, reporting failures as output errors."""
    try:
        return encode(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            side="server",
            phase="output",
            issues=(SchemaIssue(path=(), message=f"Output is not JSON serializable: {exc}"),),
            feature=feature,
            method=method,
        ) from exc


def decode(text: str | bytes) -> Any:
    """Parse JSON text produced by ``encode``."""
    return json.loads(text)
