"""Route — server-side binding of a feature to its implementation.

A route pairs a ``Feature`` with an implementation factory. The factory
receives the per-call context and returns an object (or mapping) whose
methods implement the feature::

    class CrewImpl:
        def __init__(self, ctx):
            self.ctx = ctx

        async def getOfficer(self, data):
            return self.ctx.officers[data["id"]]

    route = make_route(crew, CrewImpl)
    text = await route.call(ctx, "getOfficer", {"id": 1})

``Route.call`` validates the input, builds the implementation, invokes
the method, validates the output, and returns canonical JSON text.

The factory runs on every call and is never cached, so implementations
can close over per-request context safely. Memoize outside the route
if construction is expensive.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from telegraphy._internal.invoke import invoke
from telegraphy.envelope import encode_output
from telegraphy.errors import NotFound
from telegraphy.features import Feature
from telegraphy.schema import checked, json_schema_of

logger = logging.getLogger("telegraphy.route")


@dataclass(frozen=True, slots=True)
class Route[Ctx]:
    """A frozen feature-to-implementation binding.

    Created during app setup, registered into a ``Router``.
    """

    feature: Feature
    factory: Callable[[Ctx], Any]

    @property
    def name(self) -> str:
        return self.feature.name

    async def call(self, ctx: Ctx, method: str, arg: Any) -> str:
        """Dispatch one call and return the JSON text of its validated output.

        Raises ``NotFound`` for undeclared methods or missing
        implementations, and ``ValidationError`` when input or output
        fails its schema. Errors raised by the implementation itself
        propagate unchanged.
        """
        feature_name = self.feature.name
        contract = self.feature.get(method)
        if contract is None:
            msg = f"Method {method!r} not found in feature {feature_name!r}"
            raise NotFound(msg)

        data = checked(
            contract.input,
            arg,
            side="server",
            phase="input",
            feature=feature_name,
            method=method,
        )

        impl = await invoke(self.factory, ctx)
        handler = _lookup(impl, method)
        if handler is None:
            msg = f"Implementation for {feature_name}.{method} not found"
            raise NotFound(msg)

        logger.debug("Dispatching %s.%s", feature_name, method)
        result = await invoke(handler, data)

        output = checked(
            contract.output,
            result,
            side="server",
            phase="output",
            feature=feature_name,
            method=method,
        )
        return encode_output(output, feature=feature_name, method=method)

    def describe(self) -> dict[str, Any]:
        """Return this route's feature catalog entry (name, methods, JSON schemas)."""
        return {
            "feature": self.feature.name,
            "methods": {
                name: {
                    "input": json_schema_of(contract.input),
                    "output": json_schema_of(contract.output),
                }
                for name, contract in self.feature.schema.items()
            },
        }


def _lookup(impl: Any, method: str) -> Callable[..., Any] | None:
    """Find *method* on an implementation object or mapping."""
    if isinstance(impl, Mapping):
        handler = impl.get(method)
    else:
        handler = getattr(impl, method, None)
    if handler is None or not callable(handler):
        return None
    return handler


def make_route[Ctx](feature: Feature, factory: Callable[[Ctx], Any]) -> Route[Ctx]:
    """Bind *feature* to an implementation *factory* called with each request's context."""
    return Route(feature=feature, factory=factory)
