"""Gamification core for the Resolution Tracker app."""

__version__ = "1.0.0"
