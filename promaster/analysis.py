"""Quick diagnostic report shown before mastering.

This is a heuristic placeholder, not signal analysis: the narrative is
chosen from the file size alone (``size % 2`` picks the bass-heavy story,
``size % 3`` flags AI artifacts) and ``lufs`` / ``dynamic_range`` carry a
small random jitter. Swap in real loudness / spectral measurement before
trusting any of these numbers.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Literal, Optional, Tuple

from promaster.errors import AnalysisError

logger = logging.getLogger(__name__)

BassBalance = Literal["Good", "Heavy", "Weak"]
StereoWidth = Literal["Good", "Narrow", "Wide"]

DEFAULT_DELAY = 2.5

HEAVY_ISSUES = (
    "Sub bass (20-60Hz) eating headroom",
    "808 fundamental masking kick transient",
    "Inter-sample clipping detected (+0.8 dBTP)",
)
HEAVY_FIXES = (
    "Mono bass below 120Hz for club safety",
    "Dynamic sub EQ to unmask kick",
    "Apply true-peak limiting to fix clipping",
)
BALANCED_ISSUES = (
    "Low dynamic contrast in drop",
    "Slightly muddy low-mids (120-250Hz)",
    "Phase-weak stereo width",
)
BALANCED_FIXES = (
    "Micro-dynamic expansion (restore life)",
    "Clean up low-mids for better vocal separation",
    "Stereo depth re-balancing",
)


@dataclass(frozen=True)
class AudioAnalysis:
    lufs: float
    true_peak: float
    dynamic_range: float
    clipping: bool
    bass_balance: BassBalance
    stereo_width: StereoWidth
    ai_artifacts: bool
    issues: Tuple[str, ...]
    fixes: Tuple[str, ...]


def heuristic_analysis(name: str, size: Optional[int], rng: Optional[random.Random] = None) -> AudioAnalysis:
    """Build the report for one file synchronously."""

    if isinstance(size, bool) or not isinstance(size, int) or size < 0:
        raise AnalysisError(f"Unreadable size for {name!r}: {size!r}")
    rng = rng or random.Random()

    is_heavy = size % 2 == 0
    has_artifacts = size % 3 == 0

    return AudioAnalysis(
        lufs=-14.4 + (rng.random() * 4 - 2),
        true_peak=0.8 if is_heavy else -0.5,
        dynamic_range=6.5 + rng.random() * 3,
        clipping=is_heavy,
        bass_balance="Heavy" if is_heavy else "Good",
        stereo_width="Wide",
        ai_artifacts=has_artifacts,
        issues=HEAVY_ISSUES if is_heavy else BALANCED_ISSUES,
        fixes=HEAVY_FIXES if is_heavy else BALANCED_FIXES,
    )


async def analyze_track(
    name: str,
    size: Optional[int],
    rng: Optional[random.Random] = None,
    delay: float = DEFAULT_DELAY,
) -> AudioAnalysis:
    """Produce the diagnostic report after a fixed simulated latency."""

    if delay > 0:
        await asyncio.sleep(delay)
    report = heuristic_analysis(name, size, rng)
    logger.debug("Analysis for %s: heavy=%s artifacts=%s", name, report.clipping, report.ai_artifacts)
    return report
