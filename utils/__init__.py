"""Shared utilities."""

from utils.debounce import DelayedTask

__all__ = ["DelayedTask"]
