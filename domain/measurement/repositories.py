"""Domain Port(s) for Measurement persistence.

Defines interfaces (Protocols) that infrastructure adapters must implement.
No concrete I/O here.
"""

from __future__ import annotations

from typing import Protocol

from .value_objects import Measurement


class MeasurementRepository(Protocol):
    """Port for storing saved measurements.

    Implementations live in infrastructure (in-memory, JSON file). The
    domain only builds the record; the store chooses the medium.
    """

    def save(self, measurement: Measurement) -> None:
        """Persist one measurement."""
        ...

    def list_all(self) -> list[Measurement]:
        """Return saved measurements in save order."""
        ...
