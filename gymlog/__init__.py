"""Gym Log API: per-user exercise registry and workout logging."""

__version__ = "1.0.0"
