"""In-memory MeasurementRepository (tests and ephemeral sessions)."""

from __future__ import annotations

from domain.measurement.value_objects import Measurement


class InMemoryMeasurementStore:
    def __init__(self) -> None:
        self._items: list[Measurement] = []

    def __len__(self) -> int:
        return len(self._items)

    def save(self, measurement: Measurement) -> None:
        self._items.append(measurement)

    def list_all(self) -> list[Measurement]:
        return list(self._items)
