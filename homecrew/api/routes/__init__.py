"""API route modules."""

from . import auth, households, staff, system

__all__ = ["auth", "households", "staff", "system"]
