"""Parcel Mapper Domain Layer.

This package contains the core business logic organized by bounded contexts:
- geometry: Vertices, polygons, bounding boxes, point-in-polygon
- measurement: Geodesic area, units, edit history, polygon editor
- terrain: Sampling grid, elevation statistics, slope and color classification
"""

# Imports alphabetized per project style (isort)
from domain import geometry, measurement, terrain

__all__ = ["geometry", "measurement", "terrain"]
