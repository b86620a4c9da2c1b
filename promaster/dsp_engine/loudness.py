"""Before/after loudness for mastering reports.

pyloudnorm stays isolated here so the render path itself only needs
numpy and scipy.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

import numpy as np
import pyloudnorm as pyln

from promaster.audio import AudioBuffer

# BS.1770 channel weighting is defined up to 5 channels
MAX_METERED_CHANNELS = 5


@dataclass
class LoudnessStats:
  integrated_lufs: float
  true_peak_dbfs: float


@lru_cache(maxsize=64)
def _meter(sr: int) -> pyln.Meter:
  return pyln.Meter(sr)


def _rms_dbfs(samples: np.ndarray) -> float:
  rms = float(np.sqrt(np.mean(np.square(samples, dtype=np.float64)) + 1e-12))
  return 20.0 * np.log10(max(rms, 1e-6))


def measure_buffer(buffer: AudioBuffer) -> LoudnessStats:
  """Integrated loudness over all channels plus sample peak.

  Clips shorter than one 400 ms gating block, or with more channels than
  the meter weights, are reported as RMS level instead.
  """
  samples = buffer.samples
  if samples.shape[0] <= MAX_METERED_CHANNELS:
    data = samples.T if samples.shape[0] > 1 else samples[0]
    try:
      integrated = float(_meter(buffer.sample_rate).integrated_loudness(data))
    except ValueError:
      integrated = _rms_dbfs(samples)
  else:
    integrated = _rms_dbfs(samples)

  peak = float(np.max(np.abs(samples)) + 1e-9)
  return LoudnessStats(integrated_lufs=integrated, true_peak_dbfs=20.0 * np.log10(peak))
