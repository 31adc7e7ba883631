"""Signed webhook receiver for energy-consumption reports and billing events."""

__version__ = "1.0.0"
