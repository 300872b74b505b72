"""
SlideReel: turns slide decks into narrated videos.

Renderer selection with fallback, tracking of long-running video generation
jobs, and preflight readiness checks.
"""

__version__ = "0.3.0"
