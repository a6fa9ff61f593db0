"""Baseline Watch - real-time web-compatibility monitoring with alerting."""

__version__ = "0.1.0"
