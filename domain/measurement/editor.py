"""Polygon editor: owner of the active polygon and its edit history.

State machine over drawing mode: IDLE -> DRAWING -> IDLE (re-entrant toggle).

While DRAWING, VertexAppend events append a vertex, record an AddVertex
action and recompute the area reading. While IDLE the polygon is frozen for
appends; it stays editable through undo/redo and explicit vertex removal.

All mutations go through dispatch(). The editor is not safe for overlapping
calls: a dispatch issued while another is still being applied is rejected
with reason "busy" and logged, never merged or silently dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict

from domain.geometry.value_objects import Polygon
from domain.measurement.area import AreaModel, polygon_area
from domain.measurement.events import (
    Clear,
    DrawStart,
    DrawStop,
    EditorEvent,
    Redo,
    RemoveVertexAt,
    SelectUnit,
    Undo,
    VertexAppend,
)
from domain.measurement.history import AddVertex, EditHistory, RemoveVertex
from domain.measurement.repositories import MeasurementRepository
from domain.measurement.units import MeasurementUnit
from domain.measurement.value_objects import AreaReading, Measurement

logger = logging.getLogger(__name__)


class EditorMode(str, Enum):
    IDLE = "idle"
    DRAWING = "drawing"


class EditorOutcome(BaseModel):
    """Result of one dispatched event."""

    applied: bool
    reason: str | None = None  # Why the event was rejected (None if applied)
    mode: EditorMode
    vertex_count: int
    reading: AreaReading

    model_config = ConfigDict(frozen=True)


class PolygonEditor:
    """Single owner of the active polygon, edit history and display unit.

    Parameters
    ----------
    unit: MeasurementUnit
        Initial display unit (hectares by default, as in the field app).
    area_model: AreaModel
        Earth model for area recomputation.
    """

    def __init__(
        self,
        unit: MeasurementUnit = MeasurementUnit.HECTARE,
        area_model: AreaModel = AreaModel.ELLIPSOID,
    ) -> None:
        self._polygon = Polygon()
        self._history = EditHistory()
        self._mode = EditorMode.IDLE
        self._unit = unit
        self._area_model = area_model
        self._area_m2 = 0.0
        self._busy = False

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------
    @property
    def polygon(self) -> Polygon:
        return self._polygon

    @property
    def mode(self) -> EditorMode:
        return self._mode

    @property
    def is_drawing(self) -> bool:
        return self._mode is EditorMode.DRAWING

    @property
    def unit(self) -> MeasurementUnit:
        return self._unit

    @property
    def area_m2(self) -> float:
        return self._area_m2

    @property
    def reading(self) -> AreaReading:
        return AreaReading.from_area(self._area_m2, self._unit)

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    # ------------------------------------------------------------------
    # Mutation entry point
    # ------------------------------------------------------------------
    def dispatch(self, event: EditorEvent) -> EditorOutcome:
        """Apply one event to the active polygon.

        Raises:
            HistoryMismatchError: If the history no longer matches the polygon
        """
        if self._busy:
            logger.warning("Rejected %s: previous event still being applied", event.type)
            return self._outcome(applied=False, reason="busy")

        handler = self._handlers().get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported editor event: {type(event).__name__}")

        self._busy = True
        try:
            return handler(event)
        finally:
            self._busy = False

    def _handlers(self) -> dict[type, Callable[..., EditorOutcome]]:
        return {
            VertexAppend: self._on_append,
            DrawStart: self._on_draw_start,
            DrawStop: self._on_draw_stop,
            Clear: self._on_clear,
            Undo: self._on_undo,
            Redo: self._on_redo,
            RemoveVertexAt: self._on_remove,
            SelectUnit: self._on_select_unit,
        }

    # ------------------------------------------------------------------
    # Convenience wrappers (all route through dispatch)
    # ------------------------------------------------------------------
    def start_drawing(self) -> EditorOutcome:
        return self.dispatch(DrawStart())

    def stop_drawing(self) -> EditorOutcome:
        return self.dispatch(DrawStop())

    def toggle_drawing(self) -> EditorOutcome:
        """Flip between IDLE and DRAWING, like the toolbar draw button."""
        return self.dispatch(DrawStop() if self.is_drawing else DrawStart())

    def append(self, lat: float, lng: float, source: str = "tap") -> EditorOutcome:
        return self.dispatch(VertexAppend(lat=lat, lng=lng, source=source))

    def undo(self) -> EditorOutcome:
        return self.dispatch(Undo())

    def redo(self) -> EditorOutcome:
        return self.dispatch(Redo())

    def remove_vertex(self, index: int) -> EditorOutcome:
        return self.dispatch(RemoveVertexAt(index=index))

    def clear(self) -> EditorOutcome:
        return self.dispatch(Clear())

    def select_unit(self, unit: MeasurementUnit) -> EditorOutcome:
        return self.dispatch(SelectUnit(unit=unit))

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def snapshot(self, now: datetime | None = None) -> Measurement:
        """Build an immutable Measurement of the current polygon."""
        return Measurement(
            polygon=self._polygon,
            area_m2=self._area_m2,
            unit=self._unit,
            created_at=now or datetime.now(timezone.utc),
        )

    def save(
        self, store: MeasurementRepository, now: datetime | None = None
    ) -> Measurement:
        """Snapshot the current polygon and hand it to the store."""
        measurement = self.snapshot(now)
        store.save(measurement)
        logger.info(
            "Saved measurement: %d vertices, %.1f m^2",
            len(measurement.polygon),
            measurement.area_m2,
        )
        return measurement

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------
    def _on_append(self, event: VertexAppend) -> EditorOutcome:
        if not self.is_drawing:
            logger.warning(
                "Ignored %s vertex (%.6f, %.6f): not drawing",
                event.source,
                event.lat,
                event.lng,
            )
            return self._outcome(applied=False, reason="not drawing")

        action = AddVertex(vertex=event.vertex(), index=len(self._polygon))
        self._commit(action.apply(self._polygon))
        self._history.push(action)
        logger.debug("Appended %s vertex #%d", event.source, action.index)
        return self._outcome()

    def _on_draw_start(self, event: DrawStart) -> EditorOutcome:
        if self.is_drawing:
            return self._outcome(applied=False, reason="already drawing")
        self._mode = EditorMode.DRAWING
        logger.debug("Drawing started with %d vertices", len(self._polygon))
        return self._outcome()

    def _on_draw_stop(self, event: DrawStop) -> EditorOutcome:
        if not self.is_drawing:
            return self._outcome(applied=False, reason="not drawing")
        self._mode = EditorMode.IDLE
        logger.debug("Drawing stopped with %d vertices", len(self._polygon))
        return self._outcome()

    def _on_clear(self, event: Clear) -> EditorOutcome:
        self._history.clear()
        self._commit(Polygon())
        logger.debug("Polygon cleared")
        return self._outcome()

    def _on_undo(self, event: Undo) -> EditorOutcome:
        previous = self._history.undo(self._polygon)
        if previous is None:
            return self._outcome(applied=False, reason="nothing to undo")
        self._commit(previous)
        return self._outcome()

    def _on_redo(self, event: Redo) -> EditorOutcome:
        following = self._history.redo(self._polygon)
        if following is None:
            return self._outcome(applied=False, reason="nothing to redo")
        self._commit(following)
        return self._outcome()

    def _on_remove(self, event: RemoveVertexAt) -> EditorOutcome:
        if not 0 <= event.index < len(self._polygon):
            logger.warning(
                "Ignored removal of vertex %d: polygon has %d vertices",
                event.index,
                len(self._polygon),
            )
            return self._outcome(applied=False, reason="index out of range")
        action = RemoveVertex(vertex=self._polygon.vertices[event.index], index=event.index)
        self._commit(action.apply(self._polygon))
        self._history.push(action)
        return self._outcome()

    def _on_select_unit(self, event: SelectUnit) -> EditorOutcome:
        self._unit = event.unit
        return self._outcome()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _commit(self, polygon: Polygon) -> None:
        area = polygon_area(polygon.vertices, self._area_model)
        self._polygon = polygon
        self._area_m2 = area

    def _outcome(self, applied: bool = True, reason: str | None = None) -> EditorOutcome:
        return EditorOutcome(
            applied=applied,
            reason=reason,
            mode=self._mode,
            vertex_count=len(self._polygon),
            reading=self.reading,
        )
