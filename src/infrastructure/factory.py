"""Wiring of domain services to infrastructure adapters from Settings."""

from __future__ import annotations

import logging

import requests

from domain.errors import ConfigurationError
from domain.measurement.editor import PolygonEditor
from domain.measurement.repositories import MeasurementRepository
from domain.terrain.analyzer import TerrainAnalyzer
from domain.terrain.repositories import ElevationProvider
from infrastructure.config import Settings
from infrastructure.elevation.geotiff import GeoTiffElevationProvider
from infrastructure.elevation.google import GoogleElevationProvider
from infrastructure.storage.json_file import JsonFileMeasurementStore
from infrastructure.storage.memory import InMemoryMeasurementStore

logger = logging.getLogger(__name__)


def build_elevation_provider(
    settings: Settings, session: requests.Session | None = None
) -> ElevationProvider:
    """Local DEM when dem_path is set, otherwise the HTTP elevation API.

    Raises:
        ConfigurationError: If neither a DEM nor an API key is configured
    """
    if settings.dem_path is not None:
        logger.info("Using DEM elevation source %s", settings.dem_path.name)
        return GeoTiffElevationProvider(settings.dem_path, max_bytes=settings.dem_max_bytes)
    if not settings.google_api_key:
        raise ConfigurationError(
            "No elevation source: set GOOGLE_MAPS_API_KEY or PARCEL_DEM_PATH"
        )
    return GoogleElevationProvider(
        settings.google_api_key,
        session=session,
        timeout_s=settings.elevation_timeout_s,
        endpoint=settings.elevation_endpoint,
    )


def build_terrain_analyzer(
    settings: Settings, provider: ElevationProvider | None = None
) -> TerrainAnalyzer:
    return TerrainAnalyzer(
        provider or build_elevation_provider(settings),
        resolution=settings.grid_resolution,
        batch_size=settings.elevation_batch_size,
    )


def build_measurement_store(settings: Settings) -> MeasurementRepository:
    if settings.measurement_store_path is None:
        return InMemoryMeasurementStore()
    return JsonFileMeasurementStore(settings.measurement_store_path)


def build_editor(settings: Settings) -> PolygonEditor:
    return PolygonEditor(unit=settings.default_unit)
