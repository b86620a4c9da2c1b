"""Stereo-linked feed-forward compressor / limiter.

Level detection runs on 32-frame blocks (peak across all channels), the
static curve has a quadratic soft knee, and gain reduction is smoothed with
separate one-pole attack and release coefficients. The same gain is applied
to every channel so the stereo image does not shift under compression.
"""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from promaster.errors import RenderError

BLOCK_FRAMES = 32


@dataclass
class DynamicsCompressor:
  threshold_db: float
  ratio: float
  knee_db: float
  attack_s: float
  release_s: float

  def validate(self) -> None:
    if not -100.0 <= self.threshold_db <= 0.0:
      raise RenderError(f"Compressor threshold {self.threshold_db} dB is outside [-100, 0]")
    if not 1.0 <= self.ratio <= 20.0:
      raise RenderError(f"Compressor ratio {self.ratio} is outside [1, 20]")
    if not 0.0 <= self.knee_db <= 40.0:
      raise RenderError(f"Compressor knee {self.knee_db} dB is outside [0, 40]")
    if not 0.0 <= self.attack_s <= 1.0:
      raise RenderError(f"Compressor attack {self.attack_s} s is outside [0, 1]")
    if not 0.0 <= self.release_s <= 1.0:
      raise RenderError(f"Compressor release {self.release_s} s is outside [0, 1]")

  def gain_reduction_db(self, level_db: np.ndarray) -> np.ndarray:
    """Static curve: dB of reduction for each detected level."""
    slope = 1.0 - 1.0 / self.ratio
    over = level_db - self.threshold_db
    knee = self.knee_db
    if knee <= 0.0:
      return np.where(over > 0.0, slope * over, 0.0)
    return np.where(
      2.0 * over < -knee,
      0.0,
      np.where(
        2.0 * over > knee,
        slope * over,
        slope * (over + knee / 2.0) ** 2 / (2.0 * knee),
      ),
    )

  def process(self, x: np.ndarray, sr: int) -> np.ndarray:
    """Compress a [channels, samples] float signal."""
    n = x.shape[-1]
    n_blocks = -(-n // BLOCK_FRAMES)
    padded = np.zeros((x.shape[0], n_blocks * BLOCK_FRAMES), dtype=np.float32)
    padded[:, :n] = x

    # linked peak detector per block
    peaks = np.abs(padded).reshape(x.shape[0], n_blocks, BLOCK_FRAMES).max(axis=(0, 2))
    level = 20.0 * np.log10(np.maximum(peaks, 1e-9))
    target = self.gain_reduction_db(level)

    block_s = BLOCK_FRAMES / float(sr)
    attack = np.exp(-block_s / self.attack_s) if self.attack_s > 0.0 else 0.0
    release = np.exp(-block_s / self.release_s) if self.release_s > 0.0 else 0.0

    env = np.empty_like(target)
    prev = 0.0
    for i, g in enumerate(target):
      coeff = attack if g > prev else release
      prev = coeff * prev + (1.0 - coeff) * g
      env[i] = prev

    gain = np.repeat(10 ** (-env / 20.0), BLOCK_FRAMES)[:n]
    return (x * gain[np.newaxis, :]).astype(np.float32)
