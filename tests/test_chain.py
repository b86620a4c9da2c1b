import pytest

from promaster.chain import (
    BassSettings,
    Compressor,
    HighPass,
    HighShelf,
    LowShelf,
    Peaking,
    build_chain,
    intensity_multiplier,
)
from promaster.presets import PRESET_KEYS

LIMITER_KNEE = 0.0
LIMITER_RATIO = 20.0


def test_intensity_multiplier_anchors():
    assert intensity_multiplier(0) == 0.0
    assert intensity_multiplier(50) == 1.0
    assert intensity_multiplier(100) == 2.0


@pytest.mark.parametrize("bad", [-1, 101, 50.5, "50", True])
def test_intensity_out_of_range_rejected(bad):
    with pytest.raises(ValueError):
        intensity_multiplier(bad)


@pytest.mark.parametrize("preset", PRESET_KEYS)
@pytest.mark.parametrize("intensity", [0, 50, 100])
@pytest.mark.parametrize("phone_safe", [True, False])
def test_safety_limiter_is_always_last(preset, intensity, phone_safe):
    chain = build_chain(preset, intensity, BassSettings(impact="Savage", phone_safe=phone_safe))
    last = chain[-1]
    assert last == Compressor(
        threshold_db=-0.5 if preset == "club_bass" else -1.0,
        ratio=LIMITER_RATIO,
        knee_db=LIMITER_KNEE,
        attack_s=0.001,
        release_s=0.1,
    )
    assert sum(1 for s in chain if s == last) == 1


@pytest.mark.parametrize("preset", PRESET_KEYS)
@pytest.mark.parametrize("weight,freq", [("Deep", 60.0), ("Balanced", 80.0), ("Low", 80.0)])
def test_bass_shelf_frequency_follows_weight(preset, weight, freq):
    chain = build_chain(preset, 50, BassSettings(weight=weight, phone_safe=False))
    shelf = next(s for s in chain if isinstance(s, LowShelf))
    assert shelf.freq == freq


@pytest.mark.parametrize("preset", PRESET_KEYS)
def test_phone_safe_inserts_one_highpass_before_bass_shelf(preset):
    chain = build_chain(preset, 50, BassSettings(phone_safe=True))
    highpasses = [i for i, s in enumerate(chain) if s == HighPass(freq=40.0)]
    shelf_idx = next(i for i, s in enumerate(chain) if isinstance(s, LowShelf))
    assert len(highpasses) == 1
    assert highpasses[0] == shelf_idx - 1

    off = build_chain(preset, 50, BassSettings(phone_safe=False))
    assert HighPass(freq=40.0) not in off.stages


@pytest.mark.parametrize("impact,gain", [("Soft", 0.0), ("Heavy", 3.0), ("Savage", 6.0)])
def test_bass_gain_scales_with_intensity(impact, gain):
    for intensity, m in ((0, 0.0), (50, 1.0), (100, 2.0)):
        chain = build_chain("high_res", intensity, BassSettings(impact=impact, phone_safe=False), humanize=False)
        assert chain[0] == LowShelf(freq=60.0, gain_db=gain * m)


def test_club_bass_full_intensity_scenario():
    bass = BassSettings(impact="Savage", punch="Tight", weight="Deep", club_safe=True, phone_safe=True)
    expected = (
        HighPass(freq=40.0),
        LowShelf(freq=60.0, gain_db=12.0),
        Compressor(threshold_db=-24.0, ratio=10.0, attack_s=0.005),
        Compressor(threshold_db=-0.5, ratio=20.0, knee_db=0.0, attack_s=0.001, release_s=0.1),
    )
    assert build_chain("club_bass", 100, bass, humanize=False).stages == expected

    humanized = build_chain("club_bass", 100, bass)
    assert humanized.stages == (Peaking(freq=4000.0, q=0.5, gain_db=-2.0),) + expected


def test_humanizer_only_on_advanced_presets():
    bass = BassSettings(phone_safe=False)
    for preset in ("youtube_rap", "club_bass", "tiktok_trap", "high_res"):
        assert build_chain(preset, 50, bass)[0] == Peaking(freq=4000.0, q=0.5, gain_db=-1.0)
    for preset in ("clean", "club", "vocal", "bass"):
        assert isinstance(build_chain(preset, 50, bass)[0], LowShelf)


def test_preset_specific_stages():
    bass = BassSettings(impact="Soft", weight="Balanced", phone_safe=False)

    def body(preset, intensity=50):
        # drop humanizer, bass shelf and limiter
        stages = build_chain(preset, intensity, bass, humanize=False).stages
        return stages[1:-1]

    assert body("youtube_rap", 100) == (Compressor(threshold_db=-32.0, ratio=5.0),)
    assert body("tiktok_trap", 0) == (
        Peaking(freq=2500.0, q=1.0, gain_db=0.0),
        Compressor(threshold_db=0.0, ratio=4.0),
    )
    assert body("club") == (LowShelf(freq=100.0, gain_db=4.0),)
    assert body("vocal") == (
        Peaking(freq=3000.0, q=1.0, gain_db=3.0),
        Peaking(freq=300.0, q=1.0, gain_db=-2.0),
        Compressor(threshold_db=-18.0, ratio=3.0),
    )
    assert body("bass") == (LowShelf(freq=80.0, gain_db=6.0), Compressor(threshold_db=-10.0, ratio=4.0))
    assert body("clean") == (
        HighPass(freq=30.0),
        Compressor(threshold_db=-24.0, knee_db=30.0, ratio=2.0, attack_s=0.003, release_s=0.25),
        HighShelf(freq=10000.0, gain_db=2.0),
    )
    assert body("high_res") == ()


def test_build_is_deterministic_and_serializable():
    bass = BassSettings()
    a = build_chain("tiktok_trap", 73, bass)
    b = build_chain("tiktok_trap", 73, bass)
    assert a == b
    dicts = a.to_dicts()
    assert [d["type"] for d in dicts] == a.names()
    assert dicts[-1]["ratio"] == 20.0


def test_unknown_preset_and_bass_values_rejected():
    with pytest.raises(ValueError):
        build_chain("lofi", 50, BassSettings())
    with pytest.raises(ValueError):
        BassSettings(impact="Brutal")
    with pytest.raises(ValueError):
        BassSettings(weight="Heavy")
