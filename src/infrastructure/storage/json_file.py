"""JSON file adapter for MeasurementRepository.

The file holds a JSON array of measurements in save order. Each save rewrites
the whole file through a temporary sibling and os.replace, so a crash never
leaves a half-written array behind.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from domain.errors import MeasurementStoreError
from domain.measurement.value_objects import Measurement

# Module-level logger (reused across all calls)
logger = logging.getLogger(__name__)

_MEASUREMENTS = TypeAdapter(list[Measurement])


class JsonFileMeasurementStore:
    """Measurements persisted to a local JSON file.

    Parameters
    ----------
    file_path: Path | str
        Target file. Parent directories are created on first save.
    """

    def __init__(self, file_path: Path | str) -> None:
        self.path = Path(file_path)

    def list_all(self) -> list[Measurement]:
        """Return saved measurements; an absent file means none.

        Raises:
            MeasurementStoreError: If the file is unreadable or malformed
        """
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.error("Failed to read %s (errno=%s)", self.path.name, e.errno)
            raise MeasurementStoreError(f"Cannot read {self.path.name}") from e

        if not raw.strip():
            return []
        try:
            return _MEASUREMENTS.validate_json(raw)
        except ValidationError as e:
            raise MeasurementStoreError(
                f"{self.path.name} does not contain valid measurements"
            ) from e

    def save(self, measurement: Measurement) -> None:
        items = self.list_all()
        items.append(measurement)
        self._write(items)
        logger.debug("Stored measurement #%d in %s", len(items), self.path.name)

    def _write(self, items: list[Measurement]) -> None:
        payload = _MEASUREMENTS.dump_json(items, indent=2)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(payload)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error("Failed to write %s (errno=%s)", self.path.name, e.errno)
            raise MeasurementStoreError(f"Cannot write {self.path.name}") from e
