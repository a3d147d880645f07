"""Elevation provider adapters for the terrain bounded context.

Adapters exported for simplified imports.
"""

from .geotiff import GeoTiffElevationProvider
from .google import GoogleElevationProvider

__all__ = ["GeoTiffElevationProvider", "GoogleElevationProvider"]
