import io

import numpy as np
import pytest
import soundfile as sf

from promaster.audio import AudioBuffer
from promaster.config import Settings

SR = 44100


def sine(freq: float = 220.0, seconds: float = 0.5, sr: int = SR, channels: int = 2, amp: float = 0.5) -> np.ndarray:
    t = np.arange(int(sr * seconds)) / sr
    mono = (amp * np.sin(2 * np.pi * freq * t)).astype(np.float32)
    return np.stack([mono] * channels, axis=0)


def wav_bytes(samples: np.ndarray, sr: int = SR, subtype: str = "PCM_16") -> bytes:
    out = io.BytesIO()
    sf.write(out, samples.T, sr, format="WAV", subtype=subtype)
    return out.getvalue()


@pytest.fixture
def stereo_buffer() -> AudioBuffer:
    return AudioBuffer(samples=sine(), sample_rate=SR)


@pytest.fixture
def fast_settings(tmp_path) -> Settings:
    return Settings(progress_interval=0.001, progress_cap=90, analysis_delay=0.0, output_dir=str(tmp_path))
