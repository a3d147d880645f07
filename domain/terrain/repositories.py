"""Domain Port(s) for elevation data.

Defines interfaces (Protocols) that infrastructure adapters must implement.
No concrete I/O here.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from domain.geometry.value_objects import Vertex

from .value_objects import ElevationSample


class ElevationProvider(Protocol):
    """Port for looking up elevations of arbitrary points.

    Implementations live in infrastructure (HTTP elevation API, GeoTIFF DEM).

    Attributes:
        max_batch_size: Largest number of points accepted per sample() call
    """

    max_batch_size: int

    async def sample(self, points: Sequence[Vertex]) -> list[ElevationSample]:
        """Return one sample per point, in the same order.

        Raises:
            ElevationQueryFailedError: If the provider cannot answer the batch
        """
        ...
