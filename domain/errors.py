"""Domain Error Hierarchy.

Custom exceptions shared by the geometry, measurement and terrain bounded
contexts. Pure geometry and unit conversion never raise these for valid value
objects; only I/O-bound steps (elevation batches, location fixes, storage)
produce recoverable errors.
"""

from __future__ import annotations


class ParcelError(Exception):
    """Base error for parcel measurement operations."""


# ---------------------------------------------------------------------------
# Geometry / Editing
# ---------------------------------------------------------------------------
class GeometryError(ParcelError):
    """Base error for polygon geometry operations."""


class HistoryMismatchError(GeometryError):
    """An edit action no longer matches the polygon it is applied to.

    Raised when reverting or re-applying an action whose recorded vertex is not
    found at the recorded index. Indicates the history and the polygon were
    driven from different mutation paths.
    """

    def __init__(self, action: object, vertex_count: int) -> None:
        self.action = action
        self.vertex_count = vertex_count
        super().__init__(
            f"Action {action!r} does not match polygon with {vertex_count} vertices"
        )


class LocationUnavailableError(ParcelError):
    """The GPS fix stream failed; manual vertex input remains available."""


# ---------------------------------------------------------------------------
# Terrain Analysis
# ---------------------------------------------------------------------------
class TerrainAnalysisError(ParcelError):
    """Base error for terrain analysis."""


class PolygonRequiredError(TerrainAnalysisError):
    """Analysis requested on a polygon with fewer than 3 vertices.

    Attributes:
        vertex_count: Number of vertices the polygon had
    """

    def __init__(self, vertex_count: int) -> None:
        self.vertex_count = vertex_count
        super().__init__(
            f"Terrain analysis needs a polygon with >= 3 vertices, got {vertex_count}"
        )


class EmptyAnalysisGridError(TerrainAnalysisError):
    """No lattice point of the analysis grid falls inside the polygon."""


class ElevationQueryFailedError(TerrainAnalysisError):
    """Elevation provider failed for a batch; the whole analysis is aborted.

    Attributes:
        status: Provider status string (e.g. "REQUEST_DENIED", "HTTP_500")
    """

    def __init__(self, status: str, message: str | None = None) -> None:
        self.status = status
        self.message = message
        detail = f"Elevation query failed with status {status}"
        if message:
            detail = f"{detail}: {message}"
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Elevation Sources (DEM rasters)
# ---------------------------------------------------------------------------
class ElevationSourceError(ParcelError):
    """Base error for loading local elevation sources."""


class InvalidRasterError(ElevationSourceError):
    """File is not a valid raster, wrong format, or corrupted."""


class MissingCRSError(ElevationSourceError):
    """Raster has no CRS defined."""


class InvalidGeotransformError(ElevationSourceError):
    """Raster has invalid or missing geotransform."""


class InsufficientMemoryError(ElevationSourceError):
    """Raster requires more memory than allowed."""


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------
class MeasurementStoreError(ParcelError):
    """Saved measurements could not be read or written."""


class ConfigurationError(ParcelError):
    """Settings are missing or malformed."""
