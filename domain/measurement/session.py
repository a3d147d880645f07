"""Serialised event feed for the polygon editor.

Manual taps and a live GPS fix stream are two asynchronous sources. Both are
funnelled into one asyncio queue and applied to the editor by a single
consumer task, one event at a time in receipt order.

Usage:
    session = EditorSession(editor)
    consumer = asyncio.create_task(session.run())
    session.submit(DrawStart())
    await session.follow_location(gps_fixes())
    session.close()
    outcomes = await consumer
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterable

from domain.errors import LocationUnavailableError, ParcelError
from domain.measurement.editor import EditorOutcome, PolygonEditor
from domain.measurement.events import EditorEvent, LocationFix

logger = logging.getLogger(__name__)

# Queue sentinel marking the end of input
_CLOSE = None


class EditorSession:
    """Single mutation queue in front of a PolygonEditor."""

    def __init__(self, editor: PolygonEditor) -> None:
        self._editor = editor
        self._queue: asyncio.Queue[EditorEvent | None] = asyncio.Queue()
        self._closed = False

    @property
    def editor(self) -> PolygonEditor:
        return self._editor

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def submit(self, event: EditorEvent) -> None:
        """Enqueue an event (manual tap, toolbar action or GPS fix).

        Raises:
            RuntimeError: If the session was closed
        """
        if self._closed:
            raise RuntimeError("Editor session is closed")
        self._queue.put_nowait(event)

    def close(self) -> None:
        """Stop the consumer once every queued event has been applied."""
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSE)

    async def run(self) -> list[EditorOutcome]:
        """Apply queued events until close(); return outcomes in order.

        An event whose dispatch raises a ParcelError (e.g. HistoryMismatchError)
        is recorded as a rejected outcome with the error class as its reason;
        the events queued behind it are still applied.
        """
        outcomes: list[EditorOutcome] = []
        while True:
            event = await self._queue.get()
            try:
                if event is _CLOSE:
                    return outcomes
                outcomes.append(self._apply(event))
            finally:
                self._queue.task_done()

    def _apply(self, event: EditorEvent) -> EditorOutcome:
        try:
            return self._editor.dispatch(event)
        except ParcelError as e:
            logger.error("Failed to apply %s: %s", event.type, e)
            editor = self._editor
            return EditorOutcome(
                applied=False,
                reason=type(e).__name__,
                mode=editor.mode,
                vertex_count=len(editor.polygon),
                reading=editor.reading,
            )

    async def follow_location(self, fixes: AsyncIterable[LocationFix]) -> int:
        """Forward GPS fixes to the queue as VertexAppend events.

        Fixes are enqueued in arrival order; whether they are applied depends
        on the editor's drawing mode at the time they reach the front.

        Returns:
            Number of fixes forwarded

        Raises:
            LocationUnavailableError: If the fix stream fails. Already queued
                fixes and manual events are unaffected.
        """
        forwarded = 0
        try:
            async for fix in fixes:
                self.submit(fix.to_event())
                forwarded += 1
        except LocationUnavailableError:
            logger.warning("Location stream stopped after %d fix(es)", forwarded)
            raise
        except (OSError, TimeoutError) as e:
            logger.warning(
                "Location stream failed after %d fix(es): %s", forwarded, e
            )
            raise LocationUnavailableError(str(e)) from e
        return forwarded
