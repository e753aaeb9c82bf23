"""Focus Radar: daily task planning with LLM-assisted end-of-day review."""

__version__ = "0.1.0"
