"""Exception types raised by the mastering pipeline.

Every error is recorded per file by the batch orchestrator; none of them
aborts a batch.
"""


class MasteringError(Exception):
    """Base class for per-file mastering failures."""

    code = "MASTERING_FAILED"


class DecodeError(MasteringError):
    """Input bytes or buffer could not be read as audio."""

    code = "DECODE_FAILED"


class RenderError(MasteringError):
    """The stage graph could not be constructed or rendered."""

    code = "RENDER_FAILED"


class AnalysisError(MasteringError):
    """The diagnostic analysis could not be produced."""

    code = "ANALYSIS_FAILED"
