"""
API routers for Unforgotten.
"""
from unforgotten.api import calendar, notes

__all__ = [
    "calendar",
    "notes",
]
