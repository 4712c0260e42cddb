"""Utility helpers for MaintSight."""

from .logger import Logger

__all__ = ["Logger"]
