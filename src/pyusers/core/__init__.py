"""Core configuration and utilities for PyUsers."""

from pyusers.core.config import settings
from pyusers.core.logging import setup_logging

__all__ = ["settings", "setup_logging"]
