"""
Utility modules for the marketplace.
"""

from .formatting import format_area, format_currency
from .config import Config

__all__ = ["format_area", "format_currency", "Config"]
