"""Timed quiz sessions: loading, taking, submitting and reviewing quiz attempts."""

__version__ = "0.1.0"
