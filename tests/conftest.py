"""Root pytest configuration for all tests.

Domain tests build value objects directly; no network or file I/O. Helpers
shared across test packages live in tests/support.py.
"""

from __future__ import annotations

import pytest

from domain.geometry.value_objects import Polygon, Vertex
from tests.support import geodesic_rectangle, make_polygon


@pytest.fixture
def equator_square() -> Polygon:
    """1 x 1 degree cell at the equator: (0,0), (0,1), (1,1), (1,0)."""
    return make_polygon((0.0, 0.0), (0.0, 1.0), (1.0, 1.0), (1.0, 0.0))


@pytest.fixture
def field_polygon() -> Polygon:
    """Roughly 400 m x 300 m field near 45N, 7E."""
    return geodesic_rectangle(Vertex(lat=45.0, lng=7.0), 400.0, 300.0)
