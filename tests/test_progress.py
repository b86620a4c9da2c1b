import asyncio

import pytest

from promaster.progress import DONE_LABEL, STAGES, ProgressEstimator


async def _slow(seconds: float, value="rendered"):
    await asyncio.sleep(seconds)
    return value


async def _boom(seconds: float):
    await asyncio.sleep(seconds)
    raise RuntimeError("render exploded")


def test_tick_schedule_matches_stage_thresholds():
    ticks = ProgressEstimator().ticks()
    assert ticks[0] == (4, STAGES[0])
    assert (16, STAGES[1]) in ticks
    assert (32, STAGES[2]) in ticks
    assert (80, STAGES[5]) in ticks
    assert ticks[-1] == (88, "Validating")
    assert len(ticks) == 22


def test_ticks_are_monotonic_capped_and_end_with_done():
    ticks = []
    result = asyncio.run(
        ProgressEstimator(interval=0.002).track(_slow(0.3), lambda p, label: ticks.append((p, label)))
    )

    assert result == "rendered"
    percents = [p for p, _ in ticks]
    assert percents == sorted(percents)
    assert all(p <= 90 for p in percents[:-1])
    assert ticks[-1] == (100, DONE_LABEL)
    assert sum(1 for t in ticks if t == (100, DONE_LABEL)) == 1
    # the slow render outlived the whole estimate, so it stalled at the cap
    assert ticks[-2] == (88, "Validating")


def test_fast_render_jumps_straight_to_done():
    ticks = []
    asyncio.run(ProgressEstimator(interval=10.0).track(_slow(0.0), lambda p, label: ticks.append((p, label))))
    assert ticks == [(100, DONE_LABEL)]


def test_ticker_is_cancelled_when_render_fails():
    ticks = []

    async def scenario():
        with pytest.raises(RuntimeError):
            await ProgressEstimator(interval=0.005).track(_boom(0.02), lambda p, label: ticks.append(p))
        seen = len(ticks)
        await asyncio.sleep(0.05)
        return seen

    seen = asyncio.run(scenario())
    assert len(ticks) == seen
    assert 100 not in ticks


def test_custom_cap_and_no_observer():
    est = ProgressEstimator(cap=40)
    assert max(p for p, _ in est.ticks()) == 40
    assert asyncio.run(est.track(_slow(0.0, 7))) == 7


def test_invalid_configuration():
    with pytest.raises(ValueError):
        ProgressEstimator(interval=0)
    with pytest.raises(ValueError):
        ProgressEstimator(stages=())
    for cap in (-1, 100, 120):
        with pytest.raises(ValueError, match="cap"):
            ProgressEstimator(cap=cap)
