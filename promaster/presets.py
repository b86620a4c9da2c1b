"""Preset registry for Pro Master.

Structured metadata for every mastering preset the chain builder knows
about. The studio reads this to render its preset picker; the builder uses
``family`` to decide whether the humanizer pass applies.

Two families exist:
- ``advanced``: the hip-hop presets, intensity-scaled, humanizer capable.
- ``legacy``:   the original fixed-value presets (clean, club, vocal, bass).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Literal, Optional, get_args

PresetKey = Literal[
    "youtube_rap",
    "club_bass",
    "tiktok_trap",
    "high_res",
    "clean",
    "club",
    "vocal",
    "bass",
]
PresetFamily = Literal["advanced", "legacy"]

PRESET_KEYS: tuple[str, ...] = get_args(PresetKey)


@dataclass(frozen=True)
class PresetMeta:
    """Describes a user-facing preset.

    key:         Internal preset key passed to the chain builder.
    name:        Human-readable label for UI.
    family:      advanced | legacy.
    description: Short UX description.
    humanize:    Whether the de-harsh humanizer pass may run before it.
    """

    key: str
    name: str
    family: PresetFamily
    description: str = ""
    humanize: bool = False


ADVANCED_PRESETS: List[PresetMeta] = [
    PresetMeta(
        key="youtube_rap",
        name="YouTube Rap",
        family="advanced",
        description="Slight bass emphasis",
        humanize=True,
    ),
    PresetMeta(
        key="club_bass",
        name="Club / Car Bass",
        family="advanced",
        description="Aggressive limiter",
        humanize=True,
    ),
    PresetMeta(
        key="tiktok_trap",
        name="TikTok Trap",
        family="advanced",
        description="Mid-forward, punchy",
        humanize=True,
    ),
    PresetMeta(
        key="high_res",
        name="High-Res Archive",
        family="advanced",
        description="Preserved dynamics",
        humanize=True,
    ),
]

LEGACY_PRESETS: List[PresetMeta] = [
    PresetMeta(key="clean", name="Clean", family="legacy", description="Gentle glue and air"),
    PresetMeta(key="club", name="Club", family="legacy", description="Low-end lift for big systems"),
    PresetMeta(key="vocal", name="Vocal", family="legacy", description="Presence up, low-mid mud down"),
    PresetMeta(key="bass", name="Bass", family="legacy", description="Heavy low shelf and firm compression"),
]

_ALL_PRESETS: Dict[str, PresetMeta] = {p.key: p for p in ADVANCED_PRESETS + LEGACY_PRESETS}


def list_presets(family: Optional[PresetFamily] = None) -> List[PresetMeta]:
    """Return presets, optionally filtered by family, in registry order."""

    if family is None:
        return list(_ALL_PRESETS.values())
    return [p for p in _ALL_PRESETS.values() if p.family == family]


def get_preset(key: str) -> PresetMeta:
    """Look up a preset by key; unknown keys raise ``ValueError``."""

    try:
        return _ALL_PRESETS[key]
    except KeyError:
        raise ValueError(f"Unknown preset: {key!r} (expected one of {', '.join(PRESET_KEYS)})") from None
