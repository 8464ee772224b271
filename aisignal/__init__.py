"""AI-assisted trading signal relay with deterministic guard rails."""

__version__ = "0.1.0"
