"""Scheduling analytics for the rolling-mill decision client."""

__version__ = "0.1.0"
