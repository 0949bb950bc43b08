"""Named timing events, optionally persisted as JSON."""

from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)


@dataclass
class TimingEvent:
    name: str
    started_at: float
    duration_ms: float | None = None
    parent: str | None = None


@dataclass
class TimingRecorder:
    tool: str
    path: Path | None = None
    events: list[TimingEvent] = field(default_factory=list)
    _stack: list[str] = field(default_factory=list, repr=False)

    @contextmanager
    def event(self, name: str) -> Iterator[TimingEvent]:
        record = TimingEvent(
            name=name,
            started_at=time.time(),
            parent=self._stack[-1] if self._stack else None,
        )
        self.events.append(record)
        self._stack.append(name)
        start = time.perf_counter()
        try:
            yield record
        finally:
            record.duration_ms = round((time.perf_counter() - start) * 1000.0, 3)
            self._stack.pop()
            logger.debug("timing event=%s duration_ms=%s", name, record.duration_ms)

    def flush(self) -> None:
        if self.path is None:
            return
        payload = {
            "tool": self.tool,
            "events": [
                {
                    "name": item.name,
                    "parent": item.parent,
                    "started_at": item.started_at,
                    "duration_ms": item.duration_ms,
                }
                for item in self.events
            ],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError:
            logger.warning("Could not write timestamp file %s", self.path, exc_info=True)
