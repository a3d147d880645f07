"""Measurement Bounded Context - Value Objects.

Immutable records produced by the polygon editor: the current area reading
and the saved Measurement.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from domain.geometry.value_objects import Polygon
from domain.measurement.units import MeasurementUnit, format_area, to_display


class AreaReading(BaseModel):
    """Area of the active polygon expressed in the selected unit."""

    area_m2: float = Field(ge=0)
    unit: MeasurementUnit
    value: float = Field(ge=0)  # Already rounded to `decimals`
    decimals: int = Field(ge=0)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_area(cls, area_m2: float, unit: MeasurementUnit) -> "AreaReading":
        value, decimals = to_display(area_m2, unit)
        return cls(area_m2=area_m2, unit=unit, value=value, decimals=decimals)

    def formatted(self, with_label: bool = False) -> str:
        return format_area(self.area_m2, self.unit, with_label=with_label)


class Measurement(BaseModel):
    """Saved parcel measurement (Value Object).

    Created on explicit save and never mutated afterwards. Owns its own copy
    of the polygon (Polygon is itself immutable).

    Invariants:
        created_at is timezone-aware
    """

    polygon: Polygon
    area_m2: float = Field(ge=0)  # Raw geodesic area; unit is for display
    unit: MeasurementUnit
    created_at: datetime

    model_config = ConfigDict(frozen=True)

    @field_validator("created_at")
    @classmethod
    def validate_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("created_at must be timezone-aware")
        return value

    def display_value(self) -> float:
        value, _ = to_display(self.area_m2, self.unit)
        return value
