"""Geometry Bounded Context.

Responsible for plain polygon data and planar-in-degrees predicates:
- Value Objects: Vertex, Polygon, BoundingBox
- Services: point_in_polygon, points_in_polygon, bounding_box
"""

from .services import bounding_box, centroid, point_in_polygon, points_in_polygon
from .value_objects import BoundingBox, Polygon, Vertex

__all__ = [
    "BoundingBox",
    "Polygon",
    "Vertex",
    "bounding_box",
    "centroid",
    "point_in_polygon",
    "points_in_polygon",
]
