"""
Slide rendering package for SlideReel.
"""

from .interface import RenderedSlide, RenderingStrategy, strategy_session
from .selector import RendererSelector, build_default_selector
from .service import RenderingMetrics, RenderResult, SlideRenderingService

__all__ = [
    "RenderedSlide",
    "RenderingStrategy",
    "strategy_session",
    "RendererSelector",
    "build_default_selector",
    "RenderingMetrics",
    "RenderResult",
    "SlideRenderingService",
]
