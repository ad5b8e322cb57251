"""Feature and callable definitions — pure data, no behavior.

A feature is a named set of methods; each method pairs an input schema
with an output schema::

    from telegraphy import feature, transform
    from telegraphy import schema as s

    crew = feature("crew", {
        "getOfficer": transform(s.obj({"id": s.integer})).to(
            s.obj({"id": s.integer, "name": s.string, "rank": s.string})
        ),
    })

The same definition is shared by the client (``make_remote``) and the
server (``make_route``), which is what keeps both ends in agreement.

Free-threading safety:
    - CallableDef and Feature are frozen dataclasses
    - Feature.schema is a read-only mapping proxy over a private copy
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from telegraphy.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class CallableDef:
    """The contract for one method: what goes in, what comes out."""

    input: Any
    output: Any


@dataclass(frozen=True, slots=True)
class _Transform:
    input: Any

    def to(self, output: Any) -> CallableDef:
        return CallableDef(input=self.input, output=output)


def transform(input_schema: Any) -> _Transform:
    """Start a callable definition: ``transform(input).to(output)``."""
    return _Transform(input_schema)


@dataclass(frozen=True, slots=True, eq=False)
class Feature:
    """A named namespace of callable definitions. Immutable after creation."""

    name: str
    schema: Mapping[str, CallableDef] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            msg = f"Feature name must be a non-empty string, got {self.name!r}"
            raise ConfigurationError(msg)
        if not isinstance(self.schema, Mapping):
            msg = f"Feature {self.name!r} schema must be a mapping of method name to callable"
            raise ConfigurationError(msg)
        for method, callable_def in self.schema.items():
            if not isinstance(method, str) or not method.isidentifier():
                msg = f"Feature {self.name!r} has an invalid method name: {method!r}"
                raise ConfigurationError(msg)
            if not isinstance(callable_def, CallableDef):
                msg = (
                    f"{self.name}.{method} must be a CallableDef "
                    "(use transform(input).to(output)), "
                    f"got {type(callable_def).__name__}"
                )
                raise ConfigurationError(msg)
        object.__setattr__(self, "schema", MappingProxyType(dict(self.schema)))

    @property
    def methods(self) -> tuple[str, ...]:
        """Declared method names, in declaration order."""
        return tuple(self.schema)

    def get(self, method: str) -> CallableDef | None:
        return self.schema.get(method)

    def __contains__(self, method: object) -> bool:
        return method in self.schema

    def __iter__(self) -> Iterator[str]:
        return iter(self.schema)

    def __len__(self) -> int:
        return len(self.schema)


def feature(name: str, methods: Mapping[str, CallableDef]) -> Feature:
    """Define a feature named *name* with the given method contracts."""
    return Feature(name=name, schema=methods)
