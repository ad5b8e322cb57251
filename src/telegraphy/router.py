"""Router — feature-name lookup table in front of routes.

Mirrors the ``Route`` + ``Router`` split: a ``Route`` is the frozen
binding for one feature, the ``Router`` is the read-only table that
validates the call envelope and hands the call to the matching route::

    router = make_router({
        "crew": make_route(crew, CrewImpl),
        "missions": make_route(missions, MissionsImpl),
    })
    text = await router(ctx, {"feature": "crew", "method": "getOfficer", "input": {"id": 1}})

Free-threading safety:
    - Router._routes is a mapping proxy built in __init__, never mutated
    - Routes are frozen dataclasses
    - ctx is passed through explicitly and never stored
"""

import logging
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

from telegraphy.envelope import parse_envelope
from telegraphy.errors import ConfigurationError, NotFound, ValidationError
from telegraphy.route import Route

logger = logging.getLogger("telegraphy.router")


class Router[Ctx](Mapping[str, Route[Ctx]]):
    """Compiled feature table. Created at startup, immutable at runtime.

    Accepts either a mapping of feature name to route, or an iterable of
    routes keyed by their feature's name. Keys must match the route's
    feature name and each feature may be registered once.
    """

    __slots__ = ("_routes",)

    def __init__(self, routes: Mapping[str, Route[Ctx]] | Iterable[Route[Ctx]] = ()) -> None:
        table: dict[str, Route[Ctx]] = {}
        items = routes.items() if isinstance(routes, Mapping) else ((r.name, r) for r in routes)
        for name, route in items:
            if not isinstance(route, Route):
                msg = f"Router entry {name!r} must be a Route, got {type(route).__name__}"
                raise ConfigurationError(msg)
            if name != route.name:
                msg = f"Router key {name!r} does not match route feature {route.name!r}"
                raise ConfigurationError(msg)
            if name in table:
                msg = f"Duplicate feature name: {name!r}"
                raise ConfigurationError(msg)
            table[name] = route
        self._routes = MappingProxyType(table)

    async def dispatch(self, ctx: Ctx, payload: Any) -> str:
        """Validate *payload* as an envelope and dispatch it.

        Returns the route's JSON text. Raises ``ValidationError`` for a
        malformed envelope and ``NotFound`` for an unknown feature; route
        and implementation errors propagate unchanged.
        """
        try:
            envelope = parse_envelope(payload)
        except ValidationError as exc:
            logger.warning("Rejected envelope: %s", exc)
            raise

        route = self._routes.get(envelope.feature)
        if route is None:
            logger.warning("Unknown feature %r", envelope.feature)
            msg = f"Feature {envelope.feature!r} not found"
            raise NotFound(msg)

        return await route.call(ctx, envelope.method, envelope.input)

    async def __call__(self, ctx: Ctx, payload: Any) -> str:
        return await self.dispatch(ctx, payload)

    def describe(self) -> list[dict[str, Any]]:
        """Return the catalog of registered features, methods and their JSON schemas."""
        return [route.describe() for route in self._routes.values()]

    def __getitem__(self, name: str) -> Route[Ctx]:
        return self._routes[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def __repr__(self) -> str:
        return f"<Router features={list(self._routes)!r}>"


def make_router[Ctx](routes: Mapping[str, Route[Ctx]] | Iterable[Route[Ctx]]) -> Router[Ctx]:
    """Build a ``Router`` from a mapping or an iterable of routes."""
    return Router(routes)
