"""A tiny job-control shell and helper programs for exercising it."""

__version__ = "0.1.0"