"""Terrain Bounded Context - Value Objects.

Immutable data structures for sampled terrain. All validation occurs at
construction time via Pydantic.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from domain.geometry.value_objects import BoundingBox, Vertex

# ---------------------------------------------------------------------------
# Numeric Constants
# ---------------------------------------------------------------------------
DEFAULT_GRID_RESOLUTION = 20  # N for the N x N sampling lattice
MIN_GRID_RESOLUTION = 2  # Lattice must include both bounding box edges


class ElevationSample(BaseModel):
    """Elevation at one location (Value Object).

    Invariants:
        elevation_m is finite
    """

    location: Vertex
    elevation_m: float

    model_config = ConfigDict(frozen=True)

    @field_validator("elevation_m")
    @classmethod
    def validate_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError(f"elevation_m must be finite, got {value}")
        return value


class AnalysisGrid(BaseModel):
    """Sampling lattice over a polygon's bounding box (Value Object).

    `points` holds only the lattice points inside the polygon, in lattice
    order: rows from south to north, columns from west to east within a row.
    The retained count is usually not a multiple of the resolution.
    """

    bounds: BoundingBox
    resolution: int = Field(ge=MIN_GRID_RESOLUTION)
    points: tuple[Vertex, ...]

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_points(self) -> "AnalysisGrid":
        if len(self.points) > self.candidate_count:
            raise ValueError(
                f"Grid holds {len(self.points)} points but lattice has only "
                f"{self.candidate_count} candidates"
            )
        return self

    @property
    def candidate_count(self) -> int:
        return self.resolution * self.resolution

    def coverage_ratio(self) -> float:
        """Fraction of lattice candidates retained (0.0 to 1.0)."""
        return len(self.points) / self.candidate_count


class SlopeSummary(BaseModel):
    """Aggregate of slope percentages between index-adjacent samples."""

    min: float = Field(ge=0)
    max: float = Field(ge=0)
    average: float = Field(ge=0)
    count: int = Field(ge=0)  # Number of sample pairs measured

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_ordering(self) -> "SlopeSummary":
        if not (self.min <= self.average <= self.max):
            raise ValueError(
                f"Expected min <= average <= max, got "
                f"{self.min} / {self.average} / {self.max}"
            )
        return self


class TerrainAnalysis(BaseModel):
    """Result of one terrain analysis run (Value Object).

    Invariants:
        len(colors) == len(samples)
        min_elevation_m <= max_elevation_m
    """

    min_elevation_m: float
    max_elevation_m: float
    slope: SlopeSummary
    samples: tuple[ElevationSample, ...]
    colors: tuple[str, ...]  # "#rrggbb" per sample, same order as samples
    grid: AnalysisGrid

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_analysis(self) -> "TerrainAnalysis":
        if not self.samples:
            raise ValueError("Analysis must contain at least one sample")
        if len(self.colors) != len(self.samples):
            raise ValueError(
                f"Got {len(self.colors)} colors for {len(self.samples)} samples"
            )
        if self.min_elevation_m > self.max_elevation_m:
            raise ValueError(
                f"min_elevation_m ({self.min_elevation_m}) > "
                f"max_elevation_m ({self.max_elevation_m})"
            )
        return self

    @property
    def avg_slope(self) -> float:
        return self.slope.average

    def elevations(self) -> tuple[float, ...]:
        return tuple(s.elevation_m for s in self.samples)

    def relief_m(self) -> float:
        """Elevation range across the parcel."""
        return self.max_elevation_m - self.min_elevation_m
