"""Offline DSP engine for Pro Master.

Building blocks for rendering a declarative chain: RBJ biquads, a linked
soft-knee compressor, the offline renderer and loudness measurement.
"""
from .render import (
  RenderEngine,
  render_offline,
  build_graph,
)
from .loudness import LoudnessStats, measure_buffer

__all__ = [
  "RenderEngine",
  "render_offline",
  "build_graph",
  "LoudnessStats",
  "measure_buffer",
]
