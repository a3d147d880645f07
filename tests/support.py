"""Shared test helpers: reference polygons and a scripted elevation provider.

Imported by tests and conftest files as tests.support (project root is on
pythonpath).
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence

from pyproj import Geod

from domain.errors import ElevationQueryFailedError
from domain.geometry.value_objects import Polygon, Vertex
from domain.terrain.value_objects import ElevationSample

_geod = Geod(ellps="WGS84")


def make_polygon(*coords: tuple[float, float]) -> Polygon:
    """Polygon from (lat, lng) pairs."""
    return Polygon(vertices=tuple(Vertex(lat=lat, lng=lng) for lat, lng in coords))


def geodesic_rectangle(origin: Vertex, width_m: float, height_m: float) -> Polygon:
    """Rectangle built by walking east then north from origin (SW corner)."""
    east_lng, east_lat, _ = _geod.fwd(origin.lng, origin.lat, 90.0, width_m)
    ne_lng, ne_lat, _ = _geod.fwd(east_lng, east_lat, 0.0, height_m)
    north_lng, north_lat, _ = _geod.fwd(origin.lng, origin.lat, 0.0, height_m)
    return make_polygon(
        (origin.lat, origin.lng),
        (east_lat, east_lng),
        (ne_lat, ne_lng),
        (north_lat, north_lng),
    )


class ScriptedElevationProvider:
    """Elevation provider driven by a function of the location.

    Records the size of every batch it receives. Can be told to fail on a given
    batch number (1-based) or to block until released.
    """

    def __init__(
        self,
        elevation: Callable[[Vertex], float] = lambda v: 100.0,
        max_batch_size: int = 500,
        fail_on_batch: int | None = None,
        status: str = "OVER_QUERY_LIMIT",
        block: bool = False,
    ) -> None:
        self.elevation = elevation
        self.max_batch_size = max_batch_size
        self.fail_on_batch = fail_on_batch
        self.status = status
        self.block = block
        self.calls: list[int] = []
        # Created lazily so they bind to the running loop
        self.started: asyncio.Event | None = None
        self.release: asyncio.Event | None = None

    async def sample(self, points: Sequence[Vertex]) -> list[ElevationSample]:
        self.calls.append(len(points))
        if self.block:
            if self.started is None:
                self.started = asyncio.Event()
                self.release = asyncio.Event()
            self.started.set()
            await self.release.wait()
        if self.fail_on_batch is not None and len(self.calls) == self.fail_on_batch:
            raise ElevationQueryFailedError(self.status, "scripted failure")
        return [
            ElevationSample(location=p, elevation_m=self.elevation(p)) for p in points
        ]
