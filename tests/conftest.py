"""Shared fixtures: the ``crew`` and ``missions`` features used across tests."""

from dataclasses import dataclass, field
from typing import Any

import pytest

from telegraphy import Feature, Route, feature, make_route, transform
from telegraphy import schema as s

OFFICER = s.obj({"id": s.number, "name": s.string, "rank": s.string})
MISSION = s.obj({"id": s.integer, "title": s.string, "completed": s.boolean})


@dataclass
class ShipContext:
    officers: dict[int, dict[str, Any]] = field(default_factory=dict)
    missions: list[dict[str, Any]] = field(default_factory=list)


class CrewImpl:
    def __init__(self, ctx: ShipContext) -> None:
        self.ctx = ctx

    async def getOfficer(self, data: dict[str, Any]) -> dict[str, Any]:
        officer = self.ctx.officers.get(int(data["id"]))
        if officer is None:
            msg = f"Officer {data['id']} not found"
            raise LookupError(msg)
        return officer


class MissionsImpl:
    def __init__(self, ctx: ShipContext) -> None:
        self.ctx = ctx

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        mission = {"id": len(self.ctx.missions) + 1, "title": data["title"], "completed": False}
        self.ctx.missions.append(mission)
        return mission

    def list(self, data: dict[str, Any]) -> list[dict[str, Any]]:
        return self.ctx.missions

    async def complete(self, data: dict[str, Any]) -> dict[str, Any]:
        for mission in self.ctx.missions:
            if mission["id"] == data["id"]:
                mission["completed"] = True
                return mission
        msg = "Mission not found"
        raise LookupError(msg)


@pytest.fixture
def crew() -> Feature:
    return feature("crew", {
        "getOfficer": transform(s.obj({"id": s.number})).to(OFFICER),
    })


@pytest.fixture
def missions() -> Feature:
    return feature("missions", {
        "create": transform(s.obj({"title": s.string})).to(MISSION),
        "list": transform(s.obj({})).to(s.array(MISSION)),
        "complete": transform(s.obj({"id": s.integer})).to(MISSION),
    })


@pytest.fixture
def ship() -> ShipContext:
    return ShipContext(officers={1: {"id": 1, "name": "Picard", "rank": "Captain"}})


@pytest.fixture
def crew_route(crew: Feature) -> Route[ShipContext]:
    return make_route(crew, CrewImpl)


@pytest.fixture
def missions_route(missions: Feature) -> Route[ShipContext]:
    return make_route(missions, MissionsImpl)
