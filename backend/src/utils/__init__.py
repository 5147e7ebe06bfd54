"""Utilities for the AgriConnect feedback client."""

from .scheduler import Scheduler, ThreadingScheduler

__all__ = [
    "Scheduler",
    "ThreadingScheduler",
]
