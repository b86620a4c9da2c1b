"""Biquad EQ filters built on SciPy.

Coefficients follow the RBJ Audio-EQ-Cookbook, which is also what browser
BiquadFilterNodes implement, so a chain renders the same tonal curve here as
it does in the studio preview. Shelves use slope S = 1.

Unlike a mixing EQ there is no gain clamp: preset gains (up to +12 dB on the
bass shelf at full intensity) are applied unchanged.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import numpy as np
from scipy.signal import sosfilt

from promaster.errors import RenderError

FilterType = Literal["highpass", "lowpass", "peaking", "lowshelf", "highshelf"]


@dataclass
class BiquadFilter:
    """Container for a single biquad section in sos form."""

    sos: np.ndarray  # shape (1, 6)

    def process(self, x: np.ndarray) -> np.ndarray:
        """Apply the filter to a signal shaped [samples] or [channels, samples].

        Each channel is filtered independently from a zero state.
        """

        return np.asarray(sosfilt(self.sos, x, axis=-1), dtype=np.float32)


def design_biquad(
    ftype: FilterType,
    freq: float,
    sr: int,
    gain_db: float = 0.0,
    q: float = 0.7071,
) -> BiquadFilter:
    """Design a single biquad section for the given sample rate."""

    nyq = sr * 0.5
    if not 0.0 < freq < nyq:
        raise RenderError(f"{ftype} frequency {freq} Hz is outside (0, {nyq:g}) at {sr} Hz")
    if q <= 0.0:
        raise RenderError(f"{ftype} Q must be positive, got {q}")

    w0 = 2.0 * np.pi * freq / sr
    cos_w0 = np.cos(w0)
    sin_w0 = np.sin(w0)
    a = 10 ** (gain_db / 40.0)

    if ftype == "lowpass":
        alpha = sin_w0 / (2.0 * q)
        b = [(1.0 - cos_w0) / 2.0, 1.0 - cos_w0, (1.0 - cos_w0) / 2.0]
        den = [1.0 + alpha, -2.0 * cos_w0, 1.0 - alpha]
    elif ftype == "highpass":
        alpha = sin_w0 / (2.0 * q)
        b = [(1.0 + cos_w0) / 2.0, -(1.0 + cos_w0), (1.0 + cos_w0) / 2.0]
        den = [1.0 + alpha, -2.0 * cos_w0, 1.0 - alpha]
    elif ftype == "peaking":
        alpha = sin_w0 / (2.0 * q)
        b = [1.0 + alpha * a, -2.0 * cos_w0, 1.0 - alpha * a]
        den = [1.0 + alpha / a, -2.0 * cos_w0, 1.0 - alpha / a]
    elif ftype in ("lowshelf", "highshelf"):
        # S = 1 reduces the cookbook slope term to sqrt(2)
        alpha = sin_w0 / 2.0 * np.sqrt(2.0)
        two_sqrt_a_alpha = 2.0 * np.sqrt(a) * alpha
        if ftype == "lowshelf":
            b = [
                a * ((a + 1) - (a - 1) * cos_w0 + two_sqrt_a_alpha),
                2 * a * ((a - 1) - (a + 1) * cos_w0),
                a * ((a + 1) - (a - 1) * cos_w0 - two_sqrt_a_alpha),
            ]
            den = [
                (a + 1) + (a - 1) * cos_w0 + two_sqrt_a_alpha,
                -2 * ((a - 1) + (a + 1) * cos_w0),
                (a + 1) + (a - 1) * cos_w0 - two_sqrt_a_alpha,
            ]
        else:
            b = [
                a * ((a + 1) + (a - 1) * cos_w0 + two_sqrt_a_alpha),
                -2 * a * ((a - 1) + (a + 1) * cos_w0),
                a * ((a + 1) + (a - 1) * cos_w0 - two_sqrt_a_alpha),
            ]
            den = [
                (a + 1) - (a - 1) * cos_w0 + two_sqrt_a_alpha,
                2 * ((a - 1) - (a + 1) * cos_w0),
                (a + 1) - (a - 1) * cos_w0 - two_sqrt_a_alpha,
            ]
    else:
        raise RenderError(f"Unsupported filter type: {ftype}")

    a0 = den[0]
    sos = np.array([[b[0] / a0, b[1] / a0, b[2] / a0, 1.0, den[1] / a0, den[2] / a0]], dtype=np.float64)
    return BiquadFilter(sos=sos)
