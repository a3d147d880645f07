"""Geodesic area of parcel rings.

Two earth models are offered:
- ELLIPSOID: WGS84 ellipsoid via pyproj.Geod (same as GPS, EPSG:4326)
- SPHERE: spherical excess formula over edge longitude deltas, scaled by the
  mean earth radius

Both return unsigned square meters and 0.0 for rings with fewer than 3
vertices. Self-intersecting rings are not detected; their area is computed
as if the ring were simple. Rings crossing the anti-meridian are not
supported.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum

import numpy as np
from pyproj import Geod

from domain.geometry.value_objects import Vertex

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
EARTH_MEAN_RADIUS_M = 6_371_008.8  # IUGG mean radius R1

# WGS84 ellipsoid for geodesic calculations
_geod = Geod(ellps="WGS84")


class AreaModel(str, Enum):
    """Earth model used for area computation."""

    ELLIPSOID = "ellipsoid"
    SPHERE = "sphere"


def geodesic_area(ring: Sequence[Vertex]) -> float:
    """Area of the ring on the WGS84 ellipsoid in square meters.

    Winding direction does not matter (absolute value is returned).

    Args:
        ring: Unclosed ring of vertices

    Returns:
        Area in m^2, exactly 0.0 for fewer than 3 vertices
    """
    if len(ring) < 3:
        return 0.0
    lngs = [v.lng for v in ring]
    lats = [v.lat for v in ring]
    area, _ = _geod.polygon_area_perimeter(lngs, lats)
    return float(abs(area))


def spherical_area(
    ring: Sequence[Vertex], radius_m: float = EARTH_MEAN_RADIUS_M
) -> float:
    """Area of the ring on a sphere in square meters.

    Sums dlng * (2 + sin(lat1) + sin(lat2)) over every edge of the implicitly
    closed ring and scales by radius^2 / 2.

    Args:
        ring: Unclosed ring of vertices
        radius_m: Sphere radius

    Returns:
        Area in m^2, exactly 0.0 for fewer than 3 vertices
    """
    if len(ring) < 3:
        return 0.0
    lats = np.radians([v.lat for v in ring])
    lngs = np.radians([v.lng for v in ring])
    next_lats = np.roll(lats, -1)
    next_lngs = np.roll(lngs, -1)
    total = np.sum((next_lngs - lngs) * (2 + np.sin(lats) + np.sin(next_lats)))
    return float(abs(total * radius_m * radius_m / 2.0))


def polygon_area(
    ring: Sequence[Vertex], model: AreaModel = AreaModel.ELLIPSOID
) -> float:
    """Area of the ring under the chosen earth model."""
    if model is AreaModel.SPHERE:
        return spherical_area(ring)
    return geodesic_area(ring)
