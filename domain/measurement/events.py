"""Editor input events.

Draw/GPS sources push these tagged messages into PolygonEditor.dispatch,
the single mutation entry point.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from domain.geometry.value_objects import Vertex
from domain.measurement.units import MeasurementUnit


class VertexAppend(BaseModel):
    """Append a vertex from a manual tap or an accepted GPS fix."""

    type: Literal["vertex_append"] = "vertex_append"
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    source: Literal["tap", "gps"] = "tap"

    model_config = ConfigDict(frozen=True)

    def vertex(self) -> Vertex:
        return Vertex(lat=self.lat, lng=self.lng)


class DrawStart(BaseModel):
    type: Literal["draw_start"] = "draw_start"

    model_config = ConfigDict(frozen=True)


class DrawStop(BaseModel):
    type: Literal["draw_stop"] = "draw_stop"

    model_config = ConfigDict(frozen=True)


class Clear(BaseModel):
    type: Literal["clear"] = "clear"

    model_config = ConfigDict(frozen=True)


class Undo(BaseModel):
    type: Literal["undo"] = "undo"

    model_config = ConfigDict(frozen=True)


class Redo(BaseModel):
    type: Literal["redo"] = "redo"

    model_config = ConfigDict(frozen=True)


class RemoveVertexAt(BaseModel):
    """Explicitly delete one vertex (allowed in any mode)."""

    type: Literal["remove_vertex"] = "remove_vertex"
    index: int

    model_config = ConfigDict(frozen=True)


class SelectUnit(BaseModel):
    type: Literal["select_unit"] = "select_unit"
    unit: MeasurementUnit

    model_config = ConfigDict(frozen=True)


EditorEvent = Annotated[
    Union[VertexAppend, DrawStart, DrawStop, Clear, Undo, Redo, RemoveVertexAt, SelectUnit],
    Field(discriminator="type"),
]


class LocationFix(BaseModel):
    """One reading from a GPS fix stream."""

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    accuracy_m: float | None = Field(default=None, ge=0)

    model_config = ConfigDict(frozen=True)

    def to_event(self) -> VertexAppend:
        return VertexAppend(lat=self.lat, lng=self.lng, source="gps")
