"""Profiler toggles."""

from .cprofile_toggle import CProfileToggle

__all__ = ["CProfileToggle"]
