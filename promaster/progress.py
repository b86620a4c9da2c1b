"""Estimated progress for renders that do not report their own.

The offline render gives one signal: done. ``ProgressEstimator`` runs a
ticker next to it that walks a fixed list of stage labels at a steady pace,
never passing ``cap`` until the render really finishes.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
TickCallback = Callable[[int, str], None]

STAGES: tuple[str, ...] = (
    "Bass Intelligence Scan",
    "AI Artifact Humanization",
    "Smart Low-End Reconstruction",
    "Dynamic Processing",
    "Mastering & Limiting",
    "Validating",
)
DONE_LABEL = "Done"
STEP = 4
STAGE_SPAN = 16


class ProgressEstimator:
    def __init__(
        self,
        interval: float = 0.1,
        cap: int = 90,
        stages: Sequence[str] = STAGES,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        if not 0 <= cap < 100:
            raise ValueError(f"cap must be within [0, 100), got {cap}")
        if not stages:
            raise ValueError("at least one stage label is required")
        self.interval = interval
        self.cap = cap
        self.stages = tuple(stages)

    def ticks(self) -> list[tuple[int, str]]:
        """The full estimated sequence the ticker would emit, in order."""

        out: list[tuple[int, str]] = []
        progress = 0
        stage_idx = 0
        while progress + STEP <= self.cap:
            progress += STEP
            if progress % STAGE_SPAN == 0 and stage_idx < len(self.stages) - 1:
                stage_idx += 1
            out.append((progress, self.stages[stage_idx]))
        return out

    async def _tick(self, on_tick: TickCallback) -> None:
        for percent, label in self.ticks():
            await asyncio.sleep(self.interval)
            on_tick(percent, label)

    async def track(self, work: Awaitable[T], on_tick: Optional[TickCallback] = None) -> T:
        """Await ``work`` while emitting estimated ticks to ``on_tick``.

        On success the last tick is exactly ``(100, "Done")``. On failure the
        ticker is stopped and the exception propagates without a Done tick.
        """

        if on_tick is None:
            return await work

        ticker = asyncio.ensure_future(self._tick(on_tick))
        try:
            result = await work
        finally:
            ticker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await ticker
        on_tick(100, DONE_LABEL)
        return result
