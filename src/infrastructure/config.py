"""Application settings.

Settings are an immutable Pydantic model populated from environment
variables. Nothing here performs I/O beyond reading the mapping passed in.

Environment variables:
    GOOGLE_MAPS_API_KEY / PARCEL_GOOGLE_API_KEY  elevation API key
    PARCEL_ELEVATION_ENDPOINT                    elevation JSON endpoint
    PARCEL_ELEVATION_TIMEOUT_S                   per-request timeout
    PARCEL_ELEVATION_BATCH_SIZE                  points per elevation request
    PARCEL_GRID_RESOLUTION                       N for the N x N lattice
    PARCEL_DEM_PATH                              local GeoTIFF DEM (offline mode)
    PARCEL_DEM_MAX_BYTES                         memory budget for the DEM grid
    PARCEL_STORE_PATH                            JSON file for saved measurements
    PARCEL_DEFAULT_UNIT                          ha | sqm | acre | sqft
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from domain.errors import ConfigurationError
from domain.measurement.units import MeasurementUnit
from domain.terrain.value_objects import DEFAULT_GRID_RESOLUTION, MIN_GRID_RESOLUTION
from infrastructure.elevation.google import GOOGLE_ELEVATION_ENDPOINT, GOOGLE_MAX_BATCH_SIZE

# Environment variable -> Settings field
_ENV_FIELDS: dict[str, str] = {
    "PARCEL_GOOGLE_API_KEY": "google_api_key",
    "PARCEL_ELEVATION_ENDPOINT": "elevation_endpoint",
    "PARCEL_ELEVATION_TIMEOUT_S": "elevation_timeout_s",
    "PARCEL_ELEVATION_BATCH_SIZE": "elevation_batch_size",
    "PARCEL_GRID_RESOLUTION": "grid_resolution",
    "PARCEL_DEM_PATH": "dem_path",
    "PARCEL_DEM_MAX_BYTES": "dem_max_bytes",
    "PARCEL_STORE_PATH": "measurement_store_path",
    "PARCEL_DEFAULT_UNIT": "default_unit",
}


class Settings(BaseModel):
    """Runtime configuration (Value Object)."""

    google_api_key: str | None = Field(default=None, repr=False)
    elevation_endpoint: str = GOOGLE_ELEVATION_ENDPOINT
    elevation_timeout_s: float = Field(default=10.0, gt=0)
    elevation_batch_size: int = Field(default=GOOGLE_MAX_BATCH_SIZE, gt=0)
    grid_resolution: int = Field(default=DEFAULT_GRID_RESOLUTION, ge=MIN_GRID_RESOLUTION)
    dem_path: Path | None = None
    dem_max_bytes: int | None = Field(default=None, gt=0)
    measurement_store_path: Path | None = None
    default_unit: MeasurementUnit = MeasurementUnit.HECTARE

    model_config = ConfigDict(frozen=True)

    @field_validator("default_unit", mode="before")
    @classmethod
    def parse_unit(cls, value: object) -> object:
        if isinstance(value, str):
            return MeasurementUnit.parse(value)
        return value

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Empty variables count as unset.

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ
        values: dict[str, str] = {}
        if env.get("GOOGLE_MAPS_API_KEY"):
            values["google_api_key"] = env["GOOGLE_MAPS_API_KEY"]
        for name, field in _ENV_FIELDS.items():
            raw = env.get(name, "").strip()
            if raw:
                values[field] = raw
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
            raise ConfigurationError(f"Invalid settings: {fields}") from e
