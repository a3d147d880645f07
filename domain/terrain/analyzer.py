"""Terrain analysis engine.

Samples a frozen polygon on a lattice, fetches elevations in provider-sized
batches and reports elevation range, slope statistics and a per-sample color.

Lifecycle of analyze():
1) Reject polygons with fewer than 3 vertices
2) Build the N x N lattice and keep points inside the polygon
3) Query the provider batch by batch (sequential, no retry)
4) Aggregate min/max elevation and slopes
5) Classify every sample on the color ramp

The analyzer never touches the editor: it works on the immutable Polygon it
was given. No results are cached between calls. Cancelling the awaiting task
stops between or during batches and leaves no partial result behind.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from domain.errors import (
    ElevationQueryFailedError,
    EmptyAnalysisGridError,
    PolygonRequiredError,
)
from domain.geometry.value_objects import Polygon, Vertex
from domain.terrain.repositories import ElevationProvider
from domain.terrain.services import (
    batched,
    build_analysis_grid,
    elevation_color,
    slope_percentages,
    summarize_slopes,
)
from domain.terrain.value_objects import (
    DEFAULT_GRID_RESOLUTION,
    MIN_GRID_RESOLUTION,
    ElevationSample,
    TerrainAnalysis,
)

logger = logging.getLogger(__name__)


class TerrainAnalyzer:
    """Terrain analysis over an elevation provider.

    Parameters
    ----------
    provider: ElevationProvider
        Source of elevations; its max_batch_size caps each request.
    resolution: int
        N for the N x N lattice (default 20).
    batch_size: int | None
        Optional smaller cap per request. Never exceeds the provider's cap.
    """

    def __init__(
        self,
        provider: ElevationProvider,
        resolution: int = DEFAULT_GRID_RESOLUTION,
        batch_size: int | None = None,
    ) -> None:
        if resolution < MIN_GRID_RESOLUTION:
            raise ValueError(
                f"resolution must be >= {MIN_GRID_RESOLUTION}, got {resolution}"
            )
        if batch_size is not None and batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.provider = provider
        self.resolution = resolution
        self._batch_size = batch_size

    @property
    def batch_size(self) -> int:
        cap = self.provider.max_batch_size
        if self._batch_size is None:
            return cap
        return min(self._batch_size, cap)

    async def analyze(self, polygon: Polygon) -> TerrainAnalysis:
        """Sample the polygon and summarize its terrain.

        Args:
            polygon: Frozen parcel outline (never modified)

        Returns:
            TerrainAnalysis with min/max elevation, slope summary and colors

        Raises:
            PolygonRequiredError: If polygon has fewer than 3 vertices
            EmptyAnalysisGridError: If no lattice point falls inside polygon
            ElevationQueryFailedError: If any elevation batch fails
        """
        if not polygon.is_closed:
            raise PolygonRequiredError(len(polygon))

        grid = build_analysis_grid(polygon, self.resolution)
        if not grid.points:
            raise EmptyAnalysisGridError(
                f"No lattice point inside polygon at resolution {self.resolution}"
            )
        logger.info(
            "Terrain analysis: %d of %d lattice points inside polygon",
            len(grid.points),
            grid.candidate_count,
        )

        samples = await self._sample(grid.points)

        elevations = [s.elevation_m for s in samples]
        min_m = min(elevations)
        max_m = max(elevations)
        slope = summarize_slopes(slope_percentages(samples))
        colors = tuple(elevation_color(e, min_m, max_m) for e in elevations)

        logger.info(
            "Terrain analysis done: elevation %.1f-%.1f m, average slope %.2f%%",
            min_m,
            max_m,
            slope.average,
        )
        return TerrainAnalysis(
            min_elevation_m=min_m,
            max_elevation_m=max_m,
            slope=slope,
            samples=tuple(samples),
            colors=colors,
            grid=grid,
        )

    async def _sample(self, points: Sequence[Vertex]) -> list[ElevationSample]:
        batches = list(batched(points, self.batch_size))
        samples: list[ElevationSample] = []
        done = 0
        try:
            for batch in batches:
                result = await self.provider.sample(batch)
                if len(result) != len(batch):
                    raise ElevationQueryFailedError(
                        "INVALID_RESPONSE",
                        f"expected {len(batch)} results, got {len(result)}",
                    )
                samples.extend(result)
                done += 1
        except ElevationQueryFailedError as e:
            logger.error(
                "Elevation batch %d/%d failed (status=%s)", done + 1, len(batches), e.status
            )
            raise
        except asyncio.CancelledError:
            logger.info("Terrain analysis cancelled after %d/%d batches", done, len(batches))
            raise
        return samples
