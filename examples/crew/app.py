"""Crew — a starship roster served over HTTP.

Two features share one router. The server side is a plain ASGI app;
the client side builds remotes on an authenticated HTTP cable.

Run with any ASGI server::

    uvicorn app:app

Inspect the served features::

    telegraphy features app:router
"""

from dataclasses import dataclass, field
from typing import Any

import httpx

from telegraphy import (
    AuthenticationError,
    BearerAuth,
    RouterApp,
    feature,
    http_cable,
    make_remote,
    make_route,
    make_router,
    transform,
)
from telegraphy import schema as s
from telegraphy.asgi import Scope, bearer_token

TOKEN = "engage"


@dataclass(frozen=True, slots=True)
class Officer:
    id: int
    name: str
    rank: str


MISSION = s.obj({"id": s.integer, "title": s.string, "completed": s.boolean})

crew = feature("crew", {
    "getOfficer": transform(s.obj({"id": s.integer})).to(s.dataclass_schema(Officer)),
    "roster": transform(s.null).to(s.array(s.string)),
})

missions = feature("missions", {
    "create": transform(s.obj({"title": s.string})).to(MISSION),
    "list": transform(s.obj({"completed": s.optional(s.boolean)})).to(s.array(MISSION)),
    "complete": transform(s.obj({"id": s.integer})).to(MISSION),
})


@dataclass
class Ship:
    officers: dict[int, Officer] = field(default_factory=dict)
    missions: list[dict[str, Any]] = field(default_factory=list)


ship = Ship(officers={
    1: Officer(id=1, name="Picard", rank="Captain"),
    2: Officer(id=2, name="Riker", rank="Commander"),
})


# -- Implementations --


class Crew:
    def __init__(self, ship: Ship) -> None:
        self.ship = ship

    def getOfficer(self, data: dict[str, Any]) -> Officer:
        officer = self.ship.officers.get(data["id"])
        if officer is None:
            msg = f"No officer with id {data['id']}"
            raise LookupError(msg)
        return officer

    def roster(self, data: None) -> list[str]:
        return [officer.name for officer in self.ship.officers.values()]


class Missions:
    def __init__(self, ship: Ship) -> None:
        self.ship = ship

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        mission = {"id": len(self.ship.missions) + 1, "title": data["title"], "completed": False}
        self.ship.missions.append(mission)
        return mission

    async def list(self, data: dict[str, Any]) -> list[dict[str, Any]]:
        if data.get("completed") is None:
            return self.ship.missions
        return [m for m in self.ship.missions if m["completed"] == data["completed"]]

    async def complete(self, data: dict[str, Any]) -> dict[str, Any]:
        for mission in self.ship.missions:
            if mission["id"] == data["id"]:
                mission["completed"] = True
                return mission
        msg = f"No mission with id {data['id']}"
        raise LookupError(msg)


# -- Server --


def context(scope: Scope) -> Ship:
    """Authorize the request and hand the ship to the routes."""
    if bearer_token(scope) == TOKEN:
        return ship
    msg = "Invalid or missing bearer token"
    raise AuthenticationError(msg)


router = make_router([make_route(crew, Crew), make_route(missions, Missions)])
app = RouterApp(router, context=context)


# -- Client --


def connect(auth: BearerAuth, transport: httpx.AsyncBaseTransport | None = None) -> tuple[Any, Any]:
    """Build ``(crew, missions)`` remotes talking to this app."""
    cable = http_cable("http://testserver/rpc", auth, transport=transport or httpx.ASGITransport(app=app))
    return make_remote(crew, cable), make_remote(missions, cable)
