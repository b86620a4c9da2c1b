"""Declarative mastering chains.

A chain is plain data: an ordered tuple of stage records that the render
engine interprets. ``build_chain`` maps the user-facing knobs (preset,
intensity, bass options) onto that data without touching any audio, so the
mapping can be inspected and tested on its own.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import ClassVar, Dict, Iterator, List, Literal, Tuple, Union, get_args

from promaster.presets import get_preset

logger = logging.getLogger(__name__)

Impact = Literal["Soft", "Heavy", "Savage"]
Punch = Literal["Short", "Tight", "Long"]
Weight = Literal["Low", "Balanced", "Deep"]

IMPACT_GAIN_DB: Dict[str, float] = {"Soft": 0.0, "Heavy": 3.0, "Savage": 6.0}

# Web Audio DynamicsCompressorNode defaults, used for any field a preset
# rule leaves unspecified.
DEFAULT_THRESHOLD_DB = -24.0
DEFAULT_KNEE_DB = 30.0
DEFAULT_RATIO = 12.0
DEFAULT_ATTACK_S = 0.003
DEFAULT_RELEASE_S = 0.25

BUTTERWORTH_Q = 0.7071


@dataclass(frozen=True)
class HighPass:
    kind: ClassVar[str] = "highpass"
    freq: float
    q: float = BUTTERWORTH_Q


@dataclass(frozen=True)
class LowPass:
    kind: ClassVar[str] = "lowpass"
    freq: float
    q: float = BUTTERWORTH_Q


@dataclass(frozen=True)
class LowShelf:
    kind: ClassVar[str] = "lowshelf"
    freq: float
    gain_db: float


@dataclass(frozen=True)
class HighShelf:
    kind: ClassVar[str] = "highshelf"
    freq: float
    gain_db: float


@dataclass(frozen=True)
class Peaking:
    kind: ClassVar[str] = "peaking"
    freq: float
    q: float
    gain_db: float


@dataclass(frozen=True)
class Compressor:
    kind: ClassVar[str] = "compressor"
    threshold_db: float = DEFAULT_THRESHOLD_DB
    ratio: float = DEFAULT_RATIO
    knee_db: float = DEFAULT_KNEE_DB
    attack_s: float = DEFAULT_ATTACK_S
    release_s: float = DEFAULT_RELEASE_S


@dataclass(frozen=True)
class Gain:
    kind: ClassVar[str] = "gain"
    linear_gain: float


StageSpec = Union[HighPass, LowPass, LowShelf, HighShelf, Peaking, Compressor, Gain]


@dataclass(frozen=True)
class ChainSpec:
    """Ordered stages; signal flows stages[0] -> stages[-1] -> output."""

    stages: Tuple[StageSpec, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[StageSpec]:
        return iter(self.stages)

    def __len__(self) -> int:
        return len(self.stages)

    def __getitem__(self, index: int) -> StageSpec:
        return self.stages[index]

    def names(self) -> List[str]:
        return [stage.kind for stage in self.stages]

    def to_dicts(self) -> List[dict]:
        return [{"type": stage.kind, **asdict(stage)} for stage in self.stages]


@dataclass(frozen=True)
class BassSettings:
    """808 / low-end options, applied on top of any preset.

    ``punch`` and ``club_safe`` are carried through to reports but do not
    add stages.
    """

    impact: Impact = "Heavy"
    punch: Punch = "Tight"
    weight: Weight = "Deep"
    club_safe: bool = True
    phone_safe: bool = True

    def __post_init__(self) -> None:
        for name, value, allowed in (
            ("impact", self.impact, get_args(Impact)),
            ("punch", self.punch, get_args(Punch)),
            ("weight", self.weight, get_args(Weight)),
        ):
            if value not in allowed:
                raise ValueError(f"Invalid bass {name}: {value!r} (expected one of {', '.join(allowed)})")


def intensity_multiplier(intensity: int) -> float:
    """Map the 0-100 intensity knob to a 0-2 multiplier (50 is neutral)."""

    if isinstance(intensity, bool) or not isinstance(intensity, int):
        raise ValueError(f"Intensity must be an integer, got {intensity!r}")
    if not 0 <= intensity <= 100:
        raise ValueError(f"Intensity must be within 0..100, got {intensity}")
    return intensity / 50


def safety_limiter(preset: str) -> Compressor:
    return Compressor(
        threshold_db=-0.5 if preset == "club_bass" else -1.0,
        knee_db=0.0,
        ratio=20.0,
        attack_s=0.001,
        release_s=0.1,
    )


def _preset_stages(preset: str, m: float) -> List[StageSpec]:
    if preset == "youtube_rap":
        return [Compressor(threshold_db=-16 * m, ratio=3 + m)]
    if preset == "club_bass":
        return [Compressor(threshold_db=-12 * m, ratio=6 + 2 * m, attack_s=0.005)]
    if preset == "club":
        return [LowShelf(freq=100.0, gain_db=4.0)]
    if preset == "tiktok_trap":
        return [
            Peaking(freq=2500.0, q=1.0, gain_db=2 * m),
            Compressor(threshold_db=-14 * m, ratio=4.0),
        ]
    if preset == "vocal":
        return [
            Peaking(freq=3000.0, q=1.0, gain_db=3.0),
            Peaking(freq=300.0, q=1.0, gain_db=-2.0),
            Compressor(threshold_db=-18.0, ratio=3.0),
        ]
    if preset == "bass":
        return [
            LowShelf(freq=80.0, gain_db=6.0),
            Compressor(threshold_db=-10.0, ratio=4.0),
        ]
    if preset == "clean":
        return [
            HighPass(freq=30.0),
            Compressor(threshold_db=-24.0, knee_db=30.0, ratio=2.0, attack_s=0.003, release_s=0.25),
            HighShelf(freq=10000.0, gain_db=2.0),
        ]
    # high_res keeps its dynamics untouched
    return []


def build_chain(
    preset: str,
    intensity: int,
    bass: BassSettings,
    humanize: bool = True,
) -> ChainSpec:
    """Build the mastering chain for one preset / intensity / bass combination.

    Order: humanizer, phone-safe high-pass, bass shelf, preset stages,
    safety limiter. Options that are off simply contribute no stage.
    """

    meta = get_preset(preset)
    m = intensity_multiplier(intensity)

    stages: List[StageSpec] = []

    # 1. De-harsh humanizer pass
    if humanize and meta.humanize:
        stages.append(Peaking(freq=4000.0, q=0.5, gain_db=-1 * m))

    # 2. Bass engine (808 control)
    if bass.phone_safe:
        stages.append(HighPass(freq=40.0))
    stages.append(
        LowShelf(
            freq=60.0 if bass.weight == "Deep" else 80.0,
            gain_db=IMPACT_GAIN_DB[bass.impact] * m,
        )
    )

    # 3. Preset specifics
    stages.extend(_preset_stages(preset, m))

    # 4. Final safety limiter
    stages.append(safety_limiter(preset))

    chain = ChainSpec(stages=tuple(stages))
    logger.debug("Built %s chain at intensity %d: %s", preset, intensity, chain.names())
    return chain
