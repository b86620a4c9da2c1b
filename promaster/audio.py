"""Audio buffers, input files and the WAV codec boundary.

Decoding and encoding go through soundfile. Everything downstream works on
``AudioBuffer``: float32 samples shaped ``[channels, frames]``.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import numpy as np
import soundfile as sf

from promaster.errors import DecodeError

DEFAULT_SUBTYPE = "PCM_16"


@dataclass(frozen=True)
class AudioBuffer:
    samples: np.ndarray  # [channels, frames], float32
    sample_rate: int
    subtype: str = DEFAULT_SUBTYPE

    @property
    def channels(self) -> int:
        return int(self.samples.shape[0])

    @property
    def frame_count(self) -> int:
        return int(self.samples.shape[-1])

    @property
    def duration(self) -> float:
        return self.frame_count / float(self.sample_rate)


def check_buffer(buffer: AudioBuffer) -> None:
    """Raise ``DecodeError`` unless the buffer is a usable PCM buffer."""

    samples = buffer.samples
    if not isinstance(samples, np.ndarray) or samples.ndim != 2:
        raise DecodeError("Expected samples shaped [channels, frames]")
    if samples.shape[0] == 0 or samples.shape[1] == 0:
        raise DecodeError(f"Empty audio buffer (shape {samples.shape})")
    if buffer.sample_rate <= 0:
        raise DecodeError(f"Invalid sample rate: {buffer.sample_rate}")
    if not np.isfinite(samples).all():
        raise DecodeError("Audio buffer contains NaN or infinite samples")


def decode(raw: bytes) -> AudioBuffer:
    """Decode a container (WAV, FLAC, OGG, ...) into a float32 buffer."""

    try:
        with sf.SoundFile(io.BytesIO(raw)) as f:
            subtype = f.subtype
            sr = f.samplerate
            data = f.read(dtype="float32", always_2d=True)
    except (sf.LibsndfileError, RuntimeError, TypeError) as exc:
        raise DecodeError(f"Failed to read audio: {exc}") from exc

    buffer = AudioBuffer(samples=np.ascontiguousarray(data.T), sample_rate=int(sr), subtype=subtype)
    check_buffer(buffer)
    return buffer


def encode(buffer: AudioBuffer) -> bytes:
    """Serialize a buffer to WAV bytes.

    Channel count and sample rate are kept as-is; the source bit depth is kept
    whenever WAV can carry it, otherwise 16-bit PCM is written.
    """

    subtype = buffer.subtype if sf.check_format("WAV", buffer.subtype) else DEFAULT_SUBTYPE
    out = io.BytesIO()
    sf.write(out, buffer.samples.T, buffer.sample_rate, format="WAV", subtype=subtype)
    return out.getvalue()


@dataclass
class TrackFile:
    """An input track: stable name, byte size and lazily-read contents."""

    name: str
    size: Optional[int]
    reader: Callable[[], bytes]

    def read(self) -> bytes:
        return self.reader()

    @classmethod
    def from_bytes(cls, name: str, raw: bytes) -> "TrackFile":
        return cls(name=name, size=len(raw), reader=lambda: raw)

    @classmethod
    def from_path(cls, path: str | Path) -> "TrackFile":
        p = Path(path)
        return cls(name=p.name, size=p.stat().st_size, reader=p.read_bytes)


def master_filename(name: str) -> str:
    """Download name for a mastered track: ``beat.final.mp3`` -> ``beat_Master.wav``."""

    return f"{name.split('.')[0]}_Master.wav"
