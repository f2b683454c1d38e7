"""Sample-by-sample audio modules: accent envelope, resonator bank and loudness metering."""

__version__ = "0.1.0"