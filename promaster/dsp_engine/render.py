"""Offline render engine.

Interprets a ``ChainSpec`` against a whole decoded buffer:
source -> stage0 -> ... -> stageN -> sink. Every stage keeps the buffer
shape, so the output always has the input's channel count, length and
sample rate.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

import numpy as np

from promaster.audio import AudioBuffer, check_buffer
from promaster.chain import (
  ChainSpec,
  Compressor,
  Gain,
  HighPass,
  HighShelf,
  LowPass,
  LowShelf,
  Peaking,
  StageSpec,
)
from promaster.errors import RenderError
from promaster.progress import ProgressEstimator, TickCallback

from .biquad_eq import design_biquad
from .compressor import DynamicsCompressor

logger = logging.getLogger(__name__)

MIN_SAMPLE_RATE = 3000
MAX_SAMPLE_RATE = 768000

Processor = Callable[[np.ndarray], np.ndarray]


def _build_node(stage: StageSpec, sr: int) -> Processor:
  if isinstance(stage, (HighPass, LowPass)):
    return design_biquad(stage.kind, stage.freq, sr, q=stage.q).process
  if isinstance(stage, (LowShelf, HighShelf)):
    return design_biquad(stage.kind, stage.freq, sr, gain_db=stage.gain_db).process
  if isinstance(stage, Peaking):
    return design_biquad("peaking", stage.freq, sr, gain_db=stage.gain_db, q=stage.q).process
  if isinstance(stage, Compressor):
    comp = DynamicsCompressor(
      threshold_db=stage.threshold_db,
      ratio=stage.ratio,
      knee_db=stage.knee_db,
      attack_s=stage.attack_s,
      release_s=stage.release_s,
    )
    comp.validate()
    return lambda x: comp.process(x, sr)
  if isinstance(stage, Gain):
    gain = np.float32(stage.linear_gain)
    return lambda x: (x * gain).astype(np.float32)
  raise RenderError(f"Unsupported stage: {stage!r}")


def build_graph(chain: ChainSpec, sr: int) -> List[Processor]:
  """Construct one processor per stage, failing before any audio is touched."""
  if len(chain) == 0:
    raise RenderError("Cannot render an empty chain")
  if not MIN_SAMPLE_RATE <= sr <= MAX_SAMPLE_RATE:
    raise RenderError(f"Unsupported sample rate: {sr} Hz")
  return [_build_node(stage, sr) for stage in chain]


def render_offline(buffer: AudioBuffer, chain: ChainSpec) -> AudioBuffer:
  """Synchronously render ``buffer`` through ``chain``."""
  check_buffer(buffer)
  graph = build_graph(chain, buffer.sample_rate)

  y = buffer.samples.astype(np.float32)
  for node in graph:
    y = node(y)

  if y.shape != buffer.samples.shape:
    raise RenderError(f"Render changed buffer shape {buffer.samples.shape} -> {y.shape}")
  return AudioBuffer(samples=y, sample_rate=buffer.sample_rate, subtype=buffer.subtype)


class RenderEngine:
  """Runs offline renders off the event loop and reports estimated progress."""

  def __init__(self, estimator: Optional[ProgressEstimator] = None) -> None:
    self.estimator = estimator or ProgressEstimator()

  async def render(
    self,
    buffer: AudioBuffer,
    chain: ChainSpec,
    on_tick: Optional[TickCallback] = None,
  ) -> AudioBuffer:
    logger.debug("Rendering @ %s Hz through %s", buffer.sample_rate, chain.names())
    return await self.estimator.track(asyncio.to_thread(render_offline, buffer, chain), on_tick)
