"""Best-effort progress reporting for long-running assessments."""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)

TOTAL = 100


class ProgressSink(Protocol):
    """Receives coarse progress updates."""

    async def __call__(self, progress: int, total: int, message: str | None) -> None: ...


class ProgressNotifier:
    """Forwards progress to an optional sink, swallowing sink failures."""

    def __init__(self, sink: ProgressSink | None = None) -> None:
        self._sink = sink

    async def notify(self, progress: int, message: str | None = None) -> None:
        if self._sink is None:
            return
        try:
            await self._sink(progress, TOTAL, message)
        except Exception as exc:
            logger.warning("Failed to send progress notification (%d/%d): %s", progress, TOTAL, exc)
