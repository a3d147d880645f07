"""Geometry Bounded Context - Domain Services.

Pure functions over rings. NO I/O operations.

Ray casting treats latitude as x and longitude as y, and closes the ring
implicitly (edge from the last vertex back to the first).
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from domain.geometry.value_objects import BoundingBox, Vertex


# ---------------------------------------------------------------------------
# Bounding Box
# ---------------------------------------------------------------------------
def bounding_box(ring: Sequence[Vertex]) -> BoundingBox:
    """Return min/max latitude and longitude of the ring.

    Raises:
        ValueError: If ring is empty
    """
    if len(ring) == 0:
        raise ValueError("Cannot compute bounding box of an empty ring")
    lats = [v.lat for v in ring]
    lngs = [v.lng for v in ring]
    return BoundingBox(north=max(lats), south=min(lats), east=max(lngs), west=min(lngs))


# ---------------------------------------------------------------------------
# Point in Polygon (even-odd rule)
# ---------------------------------------------------------------------------
def point_in_polygon(point: Vertex, ring: Sequence[Vertex]) -> bool:
    """Even-odd ray casting test.

    Boundary points follow the crossing rule and are not guaranteed to be
    reported as inside. Rings with fewer than 3 vertices contain nothing.

    Args:
        point: Location to test
        ring: Polygon ring, not required to repeat the first vertex

    Returns:
        True if the ray from point crosses the ring an odd number of times
    """
    n = len(ring)
    if n < 3:
        return False

    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = ring[i].lat, ring[i].lng
        xj, yj = ring[j].lat, ring[j].lng
        # (yi > y) != (yj > y) guarantees yj != yi, so the division is safe
        if (yi > point.lng) != (yj > point.lng):
            x_cross = (xj - xi) * (point.lng - yi) / (yj - yi) + xi
            if point.lat < x_cross:
                inside = not inside
        j = i
    return inside


def points_in_polygon(
    lats: ArrayLike, lngs: ArrayLike, ring: Sequence[Vertex]
) -> NDArray[np.bool_]:
    """Vectorised even-odd test for many points at once.

    Gives the same answer as point_in_polygon for every (lat, lng) pair.

    Args:
        lats: Latitudes of the points (any shape)
        lngs: Longitudes of the points (same shape as lats)
        ring: Polygon ring

    Returns:
        Boolean array with the shape of lats
    """
    px = np.asarray(lats, dtype=np.float64)
    py = np.asarray(lngs, dtype=np.float64)
    if px.shape != py.shape:
        raise ValueError(f"Shape mismatch: lats {px.shape} vs lngs {py.shape}")

    inside = np.zeros(px.shape, dtype=bool)
    n = len(ring)
    if n < 3:
        return inside

    j = n - 1
    for i in range(n):
        xi, yi = ring[i].lat, ring[i].lng
        xj, yj = ring[j].lat, ring[j].lng
        j = i
        if yi == yj:
            # Horizontal edges never straddle the ray
            continue
        straddles = (yi > py) != (yj > py)
        x_cross = (xj - xi) * (py - yi) / (yj - yi) + xi
        inside ^= straddles & (px < x_cross)
    return inside


def centroid(ring: Sequence[Vertex]) -> Vertex:
    """Arithmetic mean of the vertices (not the area centroid)."""
    if len(ring) == 0:
        raise ValueError("Cannot compute centroid of an empty ring")
    return Vertex(
        lat=sum(v.lat for v in ring) / len(ring),
        lng=sum(v.lng for v in ring) / len(ring),
    )
