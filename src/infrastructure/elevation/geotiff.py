"""GeoTIFF DEM adapter for ElevationProvider.

Offline elevation source: a single-band DEM is read once with rasterio and
queried by nearest pixel. Rasters in a projected CRS are queried by
transforming the WGS84 points with pyproj, so no reprojection of the grid is
needed.

Lifecycle (to avoid resource leaks):
1) Validate the file (exists, extension, not a symlink, not empty, budget)
2) Open dataset with context manager inside rasterio.Env
3) Read metadata and validate band count, CRS and geotransform
4) Read band 1 as float32 with nodata -> np.nan
5) Exit contexts to release GDAL handles; keep only the array and metadata

Loading and lookups are blocking, so sample() runs them in a worker thread
via asyncio.to_thread. Load failures surface as ElevationQueryFailedError
with status "DATA_NOT_AVAILABLE", like any other failed batch.
"""

from __future__ import annotations

import asyncio
import logging
import math
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import numpy as np
import rasterio
from affine import Affine
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, model_validator
from pyproj import Transformer
from rasterio.crs import CRS
from rasterio.errors import CRSError, RasterioError
from rasterio.transform import rowcol

from domain.errors import (
    ElevationQueryFailedError,
    ElevationSourceError,
    InsufficientMemoryError,
    InvalidGeotransformError,
    InvalidRasterError,
    MissingCRSError,
)
from domain.geometry.value_objects import Vertex
from domain.terrain.value_objects import ElevationSample

# Module-level logger (reused across all calls)
logger = logging.getLogger(__name__)

DEM_MAX_BATCH_SIZE = 1000
HIGH_NODATA_PCT = 80.0  # Warn when more than this share of pixels is NoData

_WGS84 = CRS.from_epsg(4326)


def _is_wgs84(crs: Any) -> bool:
    """True if crs is EPSG:4326 or an equivalent definition.

    Uses rasterio CRS equality first, then falls back to string comparison
    for objects that only expose to_string().
    """
    try:
        if crs == _WGS84:
            return True
    except (CRSError, TypeError, AttributeError):
        pass
    return str(crs.to_string()).upper() in ("EPSG:4326", "OGC:CRS84")


class DemRaster(BaseModel):
    """In-memory elevation raster (band 1 of a DEM)."""

    data: NDArray[np.float32]  # 2D, read-only, NaN where NoData
    geotransform: tuple[float, float, float, float, float, float]  # Affine a..f
    crs: str
    is_wgs84: bool

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def validate_raster(self) -> "DemRaster":
        if self.data.ndim != 2:
            raise ValueError(f"Data must be 2D, got {self.data.ndim}D")
        if np.isnan(self.data).all():
            raise ValueError("Raster contains 100% NoData")
        frozen = np.array(self.data, dtype=np.float32, copy=True, order="C")
        frozen.flags.writeable = False
        object.__setattr__(self, "data", frozen)
        return self

    @property
    def shape(self) -> tuple[int, int]:
        height, width = self.data.shape
        return height, width

    @property
    def transform(self) -> Affine:
        """Pixel (col, row) -> raster CRS (x, y)."""
        return Affine(*self.geotransform)


class GeoTiffElevationProvider:
    """Elevation provider backed by a local GeoTIFF DEM.

    Parameters
    ----------
    file_path: Path | str
        Single-band GeoTIFF with a CRS and a valid geotransform.
    max_bytes: int | None
        Optional memory budget for the float32 grid (height*width*4).
    """

    max_batch_size = DEM_MAX_BATCH_SIZE

    def __init__(self, file_path: Path | str, max_bytes: int | None = None) -> None:
        self.path = Path(file_path)
        self.max_bytes = max_bytes
        self._raster: DemRaster | None = None
        self._transformer: Transformer | None = None
        self._load_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def load(self) -> DemRaster:
        """Read the DEM on first use and cache it for later batches.

        Safe to call from several worker threads; the file is read once.
        """
        with self._load_lock:
            if self._raster is None:
                raster = self._read()
                if not raster.is_wgs84:
                    self._transformer = Transformer.from_crs(
                        "EPSG:4326", raster.crs, always_xy=True
                    )
                self._raster = raster
            return self._raster

    def _check_file(self) -> None:
        path = self.path
        if not path.exists():
            raise FileNotFoundError(str(path))
        if path.suffix.lower() not in (".tif", ".tiff"):
            raise InvalidRasterError(f"Unsupported file extension: {path.suffix}")
        try:
            if path.is_symlink():
                raise InvalidRasterError("Symlinks are not permitted")
            size = path.stat().st_size
        except OSError as e:
            # Log only the file name to avoid leaking absolute paths
            logger.error(
                "Failed to stat %s (errno=%s, strerror=%s)",
                path.name,
                getattr(e, "errno", "unknown"),
                getattr(e, "strerror", "unknown"),
            )
            raise
        if size == 0:
            raise InvalidRasterError("Empty file")
        if self.max_bytes is not None and size > self.max_bytes * 2:
            raise InsufficientMemoryError(
                f"File size {size}B exceeds 2x memory budget {self.max_bytes}B"
            )

    def _read(self) -> DemRaster:
        self._check_file()
        path = self.path
        try:
            with rasterio.Env():
                with rasterio.open(path) as src:
                    if src.count != 1:
                        raise InvalidRasterError(f"Expected 1 band, got {src.count}")
                    if src.crs is None:
                        raise MissingCRSError("Raster has no CRS defined")

                    transform = src.transform
                    if not isinstance(transform, Affine):
                        raise InvalidGeotransformError("Missing affine transform")
                    coefficients = (
                        transform.a,
                        transform.b,
                        transform.c,
                        transform.d,
                        transform.e,
                        transform.f,
                    )
                    if not all(math.isfinite(v) for v in coefficients):
                        raise InvalidGeotransformError(
                            "Invalid (NaN/Inf) transform values"
                        )
                    if transform.a == 0 or transform.e == 0:
                        raise InvalidGeotransformError("Invalid transform scale (zero)")

                    if self.max_bytes is not None:
                        est_bytes = src.width * src.height * 4
                        if est_bytes > self.max_bytes:
                            raise InsufficientMemoryError(
                                f"Estimated grid size {est_bytes}B exceeds budget {self.max_bytes}B"
                            )

                    band = src.read(1, masked=True, out_dtype="float32")
                    if np.ma.isMaskedArray(band):
                        data = np.where(
                            np.ma.getmaskarray(band), np.float32(np.nan), band.data
                        )
                    elif src.nodata is not None:
                        data = np.where(band == src.nodata, np.float32(np.nan), band)
                    else:
                        data = np.asarray(band, dtype=np.float32)

                    if np.isnan(data).all():
                        raise InvalidRasterError(
                            "Raster contains 100% NoData pixels - unusable"
                        )

                    crs_str = src.crs.to_string()
                    raster = DemRaster(
                        data=data.astype(np.float32),
                        geotransform=coefficients,
                        crs=crs_str,
                        is_wgs84=_is_wgs84(src.crs),
                    )
        except PermissionError as e:
            raise PermissionError(path.name) from e
        except RasterioError as e:
            raise InvalidRasterError(f"Corrupted or invalid raster: {e}") from e
        except MemoryError as e:
            raise InsufficientMemoryError("Insufficient memory to load raster") from e

        nodata_pct = float(np.isnan(raster.data).mean() * 100.0)
        if nodata_pct > HIGH_NODATA_PCT:
            logger.warning("DEM %s: %.1f%% NoData pixels detected", path.name, nodata_pct)
        height, width = raster.shape
        logger.info("DEM %s: Loaded %dx%d grid in %s", path.name, width, height, crs_str)
        return raster

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------
    async def sample(self, points: Sequence[Vertex]) -> list[ElevationSample]:
        if not points:
            return []
        return await asyncio.to_thread(self.fetch, list(points))

    def fetch(self, points: Sequence[Vertex]) -> list[ElevationSample]:
        """Blocking nearest-pixel lookup for one batch.

        Raises:
            ElevationQueryFailedError: If the DEM cannot be loaded, or a point
                falls outside the DEM or on a NoData pixel
        """
        try:
            raster = self.load()
        except (OSError, ElevationSourceError) as e:
            logger.error("DEM %s unavailable: %s", self.path.name, type(e).__name__)
            raise ElevationQueryFailedError("DATA_NOT_AVAILABLE", type(e).__name__) from e

        lngs = [p.lng for p in points]
        lats = [p.lat for p in points]
        if self._transformer is not None:
            xs, ys = self._transformer.transform(lngs, lats)
        else:
            xs, ys = lngs, lats

        rows, cols = rowcol(raster.transform, xs, ys)
        rows = np.atleast_1d(np.asarray(rows, dtype=np.int64))
        cols = np.atleast_1d(np.asarray(cols, dtype=np.int64))
        height, width = raster.shape

        samples: list[ElevationSample] = []
        for point, row, col in zip(points, rows, cols):
            if not (0 <= row < height and 0 <= col < width):
                raise ElevationQueryFailedError(
                    "DATA_NOT_AVAILABLE",
                    f"point ({point.lat:.6f}, {point.lng:.6f}) outside DEM",
                )
            value = float(raster.data[row, col])
            if math.isnan(value):
                raise ElevationQueryFailedError(
                    "DATA_NOT_AVAILABLE",
                    f"point ({point.lat:.6f}, {point.lng:.6f}) is NoData",
                )
            samples.append(ElevationSample(location=point, elevation_m=value))
        return samples
