"""Terrain Bounded Context - Domain Services.

Pure domain logic for terrain sampling. NO I/O operations - elevations are
fetched by infrastructure adapters through the ElevationProvider port.

Slope is measured between index-adjacent samples in lattice order, not
between geographic neighbours. Consecutive samples at the end of one lattice
row and the start of the next are compared too. This is a known
approximation of the field app's behaviour and is kept as-is.
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Sequence
from typing import TypeVar

import numpy as np
from pyproj import Geod

from domain.geometry.services import bounding_box, points_in_polygon
from domain.geometry.value_objects import Polygon, Vertex
from domain.terrain.value_objects import (
    MIN_GRID_RESOLUTION,
    AnalysisGrid,
    ElevationSample,
    SlopeSummary,
)

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
# Five-stop elevation ramp, lowest to highest
ELEVATION_COLOR_STOPS: tuple[str, ...] = (
    "#2b83ba",  # blue
    "#abdda4",  # blue-green
    "#ffffbf",  # yellow
    "#fdae61",  # orange
    "#d7191c",  # red
)

# WGS84 ellipsoid for geodesic calculations (same as GPS, EPSG:4326)
_geod = Geod(ellps="WGS84")


# ---------------------------------------------------------------------------
# Geodesic Distance
# ---------------------------------------------------------------------------
def geodesic_distance(start: Vertex, end: Vertex) -> float:
    """Geodesic distance between two vertices in meters (WGS84)."""
    _, _, distance = _geod.inv(start.lng, start.lat, end.lng, end.lat)
    return float(abs(distance))


# ---------------------------------------------------------------------------
# Sampling Grid
# ---------------------------------------------------------------------------
def build_analysis_grid(polygon: Polygon, resolution: int) -> AnalysisGrid:
    """Lay an N x N lattice over the polygon's bounding box and keep inner points.

    The lattice includes the bounding box edges. Points are filtered with the
    even-odd rule, so lattice points on the boundary may or may not be kept.

    Args:
        polygon: Ring with at least one vertex
        resolution: N, number of lattice points per axis (>= 2)

    Returns:
        AnalysisGrid with the retained points in lattice order

    Raises:
        ValueError: If resolution < 2 or polygon is empty
    """
    if resolution < MIN_GRID_RESOLUTION:
        raise ValueError(f"resolution must be >= {MIN_GRID_RESOLUTION}, got {resolution}")

    bounds = bounding_box(polygon.vertices)
    lats = np.linspace(bounds.south, bounds.north, resolution)
    lngs = np.linspace(bounds.west, bounds.east, resolution)
    # indexing="ij": row i is latitude lats[i], column j is longitude lngs[j]
    lat_grid, lng_grid = np.meshgrid(lats, lngs, indexing="ij")

    mask = points_in_polygon(lat_grid, lng_grid, polygon.vertices)
    points = tuple(
        Vertex(lat=float(lat), lng=float(lng))
        for lat, lng in zip(lat_grid[mask], lng_grid[mask])
    )
    return AnalysisGrid(bounds=bounds, resolution=resolution, points=points)


def batched(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of at most size items."""
    if size <= 0:
        raise ValueError(f"batch size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield items[start : start + size]


# ---------------------------------------------------------------------------
# Slope Statistics
# ---------------------------------------------------------------------------
def slope_percentages(samples: Sequence[ElevationSample]) -> list[float]:
    """Slope |dz| / distance * 100 between each pair of index-adjacent samples.

    Pairs at zero distance (duplicate locations) are skipped.
    """
    if len(samples) < 2:
        return []

    lngs = np.array([s.location.lng for s in samples])
    lats = np.array([s.location.lat for s in samples])
    elevations = np.array([s.elevation_m for s in samples])

    _, _, distances = _geod.inv(lngs[:-1], lats[:-1], lngs[1:], lats[1:])
    distances = np.abs(np.asarray(distances, dtype=np.float64))
    rises = np.abs(np.diff(elevations))

    valid = distances > 0
    return [float(v) for v in rises[valid] / distances[valid] * 100.0]


def summarize_slopes(slopes: Sequence[float]) -> SlopeSummary:
    """Min / max / average of slope percentages; all zero when empty."""
    if len(slopes) == 0:
        return SlopeSummary(min=0.0, max=0.0, average=0.0, count=0)
    values = np.asarray(slopes, dtype=np.float64)
    low = float(values.min())
    high = float(values.max())
    # Clamp: the float mean of equal values can land one ulp outside [low, high]
    average = min(max(float(values.mean()), low), high)
    return SlopeSummary(min=low, max=high, average=average, count=len(values))


# ---------------------------------------------------------------------------
# Color Classification
# ---------------------------------------------------------------------------
def _parse_hex(color: str) -> tuple[int, int, int]:
    digits = color.lstrip("#")
    if len(digits) != 6:
        raise ValueError(f"Expected #rrggbb color, got {color!r}")
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def interpolate_color(start: str, end: str, ratio: float) -> str:
    """Linear RGB blend of two #rrggbb colors; ratio 0 gives start, 1 gives end."""
    r1, g1, b1 = _parse_hex(start)
    r2, g2, b2 = _parse_hex(end)

    def channel(a: int, b: int) -> int:
        # Round half up, matching the web client's Math.round
        return int(math.floor(a + (b - a) * ratio + 0.5))

    return "#{:02x}{:02x}{:02x}".format(channel(r1, r2), channel(g1, g2), channel(b1, b2))


def elevation_color(elevation_m: float, min_m: float, max_m: float) -> str:
    """Color of an elevation on the five-stop ramp.

    The observed [min_m, max_m] range is normalized to [0, 1]; values outside
    are clamped. A flat range (max_m == min_m) maps everything to the lowest
    stop.
    """
    span = max_m - min_m
    ratio = 0.0 if span <= 0 else (elevation_m - min_m) / span
    ratio = min(1.0, max(0.0, ratio))

    segments = len(ELEVATION_COLOR_STOPS) - 1
    index = min(int(math.floor(ratio * segments)), segments - 1)
    remainder = ratio * segments - index
    return interpolate_color(
        ELEVATION_COLOR_STOPS[index], ELEVATION_COLOR_STOPS[index + 1], remainder
    )
