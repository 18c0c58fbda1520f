"""Feedback API: event feedback submissions backed by SQLAlchemy."""

__version__ = "1.0.0"
