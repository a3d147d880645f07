"""Unit conversion table for displayed areas.

| unit | factor from m^2 | decimals |
|------|-----------------|----------|
| ha   | 1/10000         | 2        |
| sqm  | 1               | 0        |
| acre | 1/4046.86       | 2        |
| sqft | 1/0.092903      | 0        |
"""

from __future__ import annotations

import math
from enum import Enum
from typing import NamedTuple


class UnitInfo(NamedTuple):
    square_meters: float  # Size of one unit in m^2
    decimals: int
    label: str


class MeasurementUnit(str, Enum):
    HECTARE = "ha"
    SQUARE_METER = "sqm"
    ACRE = "acre"
    SQUARE_FOOT = "sqft"

    @property
    def info(self) -> UnitInfo:
        return _UNIT_TABLE[self]

    @property
    def factor(self) -> float:
        """Multiplier converting m^2 into this unit."""
        return 1.0 / self.info.square_meters

    @property
    def decimals(self) -> int:
        return self.info.decimals

    @classmethod
    def parse(cls, text: str) -> "MeasurementUnit":
        """Look up a unit by its short code, case-insensitive.

        Raises:
            ValueError: If the code is unknown
        """
        code = text.strip().lower()
        for unit in cls:
            if unit.value == code:
                return unit
        known = ", ".join(u.value for u in cls)
        raise ValueError(f"Unknown measurement unit {text!r} (expected one of {known})")


_UNIT_TABLE: dict[MeasurementUnit, UnitInfo] = {
    MeasurementUnit.HECTARE: UnitInfo(10_000.0, 2, "hectares"),
    MeasurementUnit.SQUARE_METER: UnitInfo(1.0, 0, "square meters"),
    MeasurementUnit.ACRE: UnitInfo(4046.86, 2, "acres"),
    MeasurementUnit.SQUARE_FOOT: UnitInfo(0.092903, 0, "square feet"),
}


def _round_half_away(value: float, decimals: int) -> float:
    # round() uses banker's rounding; displayed areas round half away from zero
    scale = 10**decimals
    return math.copysign(math.floor(abs(value) * scale + 0.5) / scale, value)


def to_display(area_m2: float, unit: MeasurementUnit) -> tuple[float, int]:
    """Convert square meters into unit, rounded to the unit's decimals.

    Returns:
        (value, decimals)
    """
    decimals = unit.decimals
    return _round_half_away(area_m2 * unit.factor, decimals), decimals


def from_display(value: float, unit: MeasurementUnit) -> float:
    """Convert a displayed value back into square meters."""
    return value * unit.info.square_meters


def format_area(area_m2: float, unit: MeasurementUnit, with_label: bool = False) -> str:
    """Fixed-decimals string for display, e.g. "12.50" or "12.50 hectares"."""
    value, decimals = to_display(area_m2, unit)
    text = f"{value:.{decimals}f}"
    if with_label:
        return f"{text} {unit.info.label}"
    return text
