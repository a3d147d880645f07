"""Measurement store adapters."""

from .json_file import JsonFileMeasurementStore
from .memory import InMemoryMeasurementStore

__all__ = ["InMemoryMeasurementStore", "JsonFileMeasurementStore"]
