"""Concurrent Amazon SQS message transfer."""

__version__ = "0.1.0"
