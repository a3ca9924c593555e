"""Utility modules for zine."""

from zine.utils.async_utils import run_async_safely

__all__ = ["run_async_safely"]
