"""Typed progress channel for one discovery run.

Adapters and the executor publish ``ProgressEvent`` records; the caller drains
them through ``events()``. Each reporter belongs to exactly one run.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Dict, Iterable, Optional

from discovery.models import TERMINAL_PROGRESS_STATUSES, ProgressEvent, ProgressStatus

logger = logging.getLogger(__name__)


class ProgressReporter:
    def __init__(self, sources: Iterable[str] = (), weights: Optional[Dict[str, float]] = None):
        self._queue: "asyncio.Queue[Optional[ProgressEvent]]" = asyncio.Queue()
        self._weights: Dict[str, float] = {}
        self._progress: Dict[str, int] = {}
        self._latest: Dict[str, ProgressEvent] = {}
        self._closed = False
        for source in sources:
            self.register(source, (weights or {}).get(source, 1.0))

    def register(self, source: str, weight: float = 1.0) -> None:
        """Declare a source so it counts towards overall progress and completion."""
        if source in self._weights:
            return
        self._weights[source] = max(weight, 0.0)
        self._progress[source] = 0

    @property
    def sources(self) -> Iterable[str]:
        return tuple(self._weights)

    @property
    def closed(self) -> bool:
        return self._closed

    def is_terminal(self, source: str) -> bool:
        event = self._latest.get(source)
        return event is not None and event.is_terminal

    @property
    def all_terminal(self) -> bool:
        return all(self.is_terminal(source) for source in self._weights)

    def overall_progress(self) -> int:
        total_weight = sum(self._weights.values())
        if total_weight <= 0:
            return 100 if self._weights and self.all_terminal else 0
        weighted = sum(self._progress[s] * w for s, w in self._weights.items())
        return int(round(weighted / total_weight))

    def publish(
        self,
        source: str,
        status: ProgressStatus,
        progress: Optional[int] = None,
        *,
        message: Optional[str] = None,
        count: Optional[int] = None,
    ) -> Optional[ProgressEvent]:
        """Record one event. Returns None when the event is dropped.

        Events are dropped once the channel is closed or once the source has
        already reported a terminal status. Progress never moves backwards for
        a source; terminal statuses force it to 100.
        """
        if self._closed:
            logger.debug(f"[Progress] Dropping {source}:{status} after close")
            return None
        if self.is_terminal(source):
            logger.debug(f"[Progress] Dropping {source}:{status}, source already finished")
            return None

        self.register(source)
        if status in TERMINAL_PROGRESS_STATUSES:
            value = 100
        else:
            value = self._progress[source] if progress is None else int(progress)
        value = max(self._progress[source], min(100, max(0, value)))
        self._progress[source] = value

        event = ProgressEvent(
            source=source,
            status=status,
            progress=value,
            message=message,
            count=count,
            overall_progress=self.overall_progress(),
        )
        self._latest[source] = event
        self._queue.put_nowait(event)
        return event

    def close(self) -> None:
        """End the stream. Readers stop after draining what was already published."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    async def events(self) -> AsyncIterator[ProgressEvent]:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event

    def snapshot(self) -> Dict[str, ProgressEvent]:
        return dict(self._latest)
