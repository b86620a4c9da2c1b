"""Pro Master: preset-driven offline mastering for hip-hop tracks."""

__version__ = "0.1.0"
