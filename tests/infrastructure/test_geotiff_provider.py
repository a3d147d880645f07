"""Tests for the GeoTIFF DEM elevation adapter.

Small DEMs are written to tmp_path with rasterio, so the adapter runs against
real GDAL datasets.
"""

from __future__ import annotations

import asyncio
import time

import numpy as np
import pytest
import rasterio
from affine import Affine
from pyproj import Transformer

from domain.errors import (
    ElevationQueryFailedError,
    InsufficientMemoryError,
    InvalidRasterError,
    MissingCRSError,
)
from domain.geometry.value_objects import Vertex
from domain.terrain.analyzer import TerrainAnalyzer
from infrastructure.elevation.geotiff import GeoTiffElevationProvider
from tests.support import make_polygon

NODATA = -9999.0
# 0.01 degree pixels, north-west corner at (-20, -46)
WGS84_TRANSFORM = Affine.translation(-46.0, -20.0) * Affine.scale(0.01, -0.01)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def ramp(size: int = 10) -> np.ndarray:
    """Pixel value = row * 10 + col."""
    rows, cols = np.indices((size, size))
    return (rows * 10 + cols).astype(np.float32)


def write_dem(path, data, transform=WGS84_TRANSFORM, crs="EPSG:4326", count=1):
    profile = {
        "driver": "GTiff",
        "height": data.shape[0],
        "width": data.shape[1],
        "count": count,
        "dtype": "float32",
        "transform": transform,
        "nodata": NODATA,
    }
    if crs is not None:
        profile["crs"] = crs
    with rasterio.open(path, "w", **profile) as dst:
        for band in range(1, count + 1):
            dst.write(data, band)
    return path


def sample(provider, *coords):
    points = [Vertex(lat=lat, lng=lng) for lat, lng in coords]
    return asyncio.run(provider.sample(points))


# ===========================================================================
# Sampling
# ===========================================================================
def test_nearest_pixel_lookup(tmp_path):
    path = write_dem(tmp_path / "dem.tif", ramp())
    provider = GeoTiffElevationProvider(path)

    samples = sample(provider, (-20.025, -45.965), (-20.095, -45.905))

    assert [s.elevation_m for s in samples] == [23.0, 99.0]
    assert samples[0].location == Vertex(lat=-20.025, lng=-45.965)


def test_projected_dem_is_queried_through_transform(tmp_path):
    to_utm = Transformer.from_crs("EPSG:4326", "EPSG:32723", always_xy=True)
    x, y = to_utm.transform(-45.0, -20.0)
    # Query point sits in pixel (row 5, col 5) of a 30 m grid
    transform = Affine.translation(x - 165.0, y + 165.0) * Affine.scale(30.0, -30.0)
    path = write_dem(tmp_path / "utm.tif", ramp(), transform=transform, crs="EPSG:32723")

    provider = GeoTiffElevationProvider(path)
    (result,) = sample(provider, (-20.0, -45.0))

    assert result.elevation_m == 55.0
    assert not provider.load().is_wgs84


def test_point_outside_dem(tmp_path):
    provider = GeoTiffElevationProvider(write_dem(tmp_path / "dem.tif", ramp()))
    with pytest.raises(ElevationQueryFailedError) as exc_info:
        sample(provider, (-19.5, -45.95))
    assert exc_info.value.status == "DATA_NOT_AVAILABLE"


def test_nodata_pixel(tmp_path):
    data = ramp()
    data[2, 3] = NODATA
    provider = GeoTiffElevationProvider(write_dem(tmp_path / "dem.tif", data))
    with pytest.raises(ElevationQueryFailedError, match="NoData") as exc_info:
        sample(provider, (-20.025, -45.965))
    assert exc_info.value.status == "DATA_NOT_AVAILABLE"


def test_empty_batch_does_not_open_file(tmp_path):
    provider = GeoTiffElevationProvider(tmp_path / "missing.tif")
    assert asyncio.run(provider.sample([])) == []


def test_raster_loaded_once(tmp_path, monkeypatch):
    path = write_dem(tmp_path / "dem.tif", ramp())
    opened = []
    real_open = rasterio.open

    def counting_open(*args, **kwargs):
        opened.append(args[0])
        return real_open(*args, **kwargs)

    monkeypatch.setattr(rasterio, "open", counting_open)
    provider = GeoTiffElevationProvider(path)
    sample(provider, (-20.025, -45.965))
    sample(provider, (-20.055, -45.915))
    assert len(opened) == 1


def test_raster_data_is_read_only(tmp_path):
    provider = GeoTiffElevationProvider(write_dem(tmp_path / "dem.tif", ramp()))
    raster = provider.load()
    assert raster.shape == (10, 10)
    assert raster.transform == WGS84_TRANSFORM
    with pytest.raises(ValueError):
        raster.data[0, 0] = 1.0


# ===========================================================================
# Validation
# ===========================================================================
def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        GeoTiffElevationProvider(tmp_path / "nope.tif").load()


def test_wrong_extension(tmp_path):
    path = tmp_path / "dem.png"
    path.write_bytes(b"\x89PNG")
    with pytest.raises(InvalidRasterError, match="extension"):
        GeoTiffElevationProvider(path).load()


def test_empty_file(tmp_path):
    path = tmp_path / "dem.tif"
    path.touch()
    with pytest.raises(InvalidRasterError, match="Empty"):
        GeoTiffElevationProvider(path).load()


def test_symlink_rejected(tmp_path):
    target = write_dem(tmp_path / "dem.tif", ramp())
    link = tmp_path / "link.tif"
    link.symlink_to(target)
    with pytest.raises(InvalidRasterError, match="Symlinks"):
        GeoTiffElevationProvider(link).load()


def test_corrupted_file(tmp_path):
    path = tmp_path / "dem.tif"
    path.write_bytes(b"definitely not a tiff")
    with pytest.raises(InvalidRasterError, match="Corrupted"):
        GeoTiffElevationProvider(path).load()


def test_multiband_rejected(tmp_path):
    path = write_dem(tmp_path / "dem.tif", ramp(), count=2)
    with pytest.raises(InvalidRasterError, match="1 band"):
        GeoTiffElevationProvider(path).load()


def test_missing_crs(tmp_path):
    path = write_dem(tmp_path / "dem.tif", ramp(), crs=None)
    with pytest.raises(MissingCRSError):
        GeoTiffElevationProvider(path).load()


def test_all_nodata(tmp_path):
    data = np.full((10, 10), NODATA, dtype=np.float32)
    path = write_dem(tmp_path / "dem.tif", data)
    with pytest.raises(InvalidRasterError, match="100% NoData"):
        GeoTiffElevationProvider(path).load()


def test_memory_budget(tmp_path):
    path = write_dem(tmp_path / "dem.tif", ramp())
    with pytest.raises(InsufficientMemoryError):
        GeoTiffElevationProvider(path, max_bytes=100).load()


def test_high_nodata_warning(tmp_path, caplog):
    data = np.full((10, 10), NODATA, dtype=np.float32)
    data[0, :5] = 1.0
    path = write_dem(tmp_path / "dem.tif", data)
    with caplog.at_level("WARNING", logger="infrastructure.elevation.geotiff"):
        GeoTiffElevationProvider(path).load()
    assert "NoData pixels detected" in caplog.text


# ===========================================================================
# Integration with the analyzer
# ===========================================================================
@pytest.mark.parametrize(
    "make_path",
    [
        lambda tmp: tmp / "missing.tif",
        lambda tmp: write_dem(tmp / "nocrs.tif", ramp(), crs=None),
    ],
    ids=["missing", "no-crs"],
)
def test_unloadable_dem_fails_batch(tmp_path, make_path):
    provider = GeoTiffElevationProvider(make_path(tmp_path))
    with pytest.raises(ElevationQueryFailedError) as exc_info:
        sample(provider, (-20.025, -45.965))
    assert exc_info.value.status == "DATA_NOT_AVAILABLE"


def test_analysis_over_missing_dem(tmp_path):
    provider = GeoTiffElevationProvider(tmp_path / "missing.tif")
    parcel = make_polygon((-20.01, -45.99), (-20.01, -45.95), (-20.05, -45.95))
    with pytest.raises(ElevationQueryFailedError) as exc_info:
        asyncio.run(TerrainAnalyzer(provider).analyze(parcel))
    assert exc_info.value.status == "DATA_NOT_AVAILABLE"
    assert exc_info.value.message == "FileNotFoundError"


def test_analysis_over_dem(tmp_path):
    provider = GeoTiffElevationProvider(write_dem(tmp_path / "dem.tif", ramp()))
    parcel = make_polygon((-20.01, -45.99), (-20.01, -45.91), (-20.09, -45.91))
    analysis = asyncio.run(TerrainAnalyzer(provider, resolution=5).analyze(parcel))
    assert 0.0 <= analysis.min_elevation_m < analysis.max_elevation_m <= 99.0


def test_slow_load_does_not_block_event_loop(tmp_path):
    provider = GeoTiffElevationProvider(write_dem(tmp_path / "dem.tif", ramp()))
    real_read = provider._read

    def slow_read():
        time.sleep(0.3)
        return real_read()

    provider._read = slow_read

    async def scenario():
        ticks = 0
        lookup = asyncio.create_task(
            provider.sample([Vertex(lat=-20.025, lng=-45.965)])
        )
        while not lookup.done():
            ticks += 1
            await asyncio.sleep(0.01)
        return ticks, await lookup

    ticks, samples = asyncio.run(scenario())
    assert samples[0].elevation_m == 23.0
    assert ticks > 5
