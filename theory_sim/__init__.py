"""Publication-time simulator for log-scaled idle theories."""

__version__ = "0.1.0"
