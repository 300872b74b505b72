"""
Configuration package for SlideReel.
"""

from .config import Config, config

__all__ = ["Config", "config"]
