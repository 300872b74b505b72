"""
Slide rendering service for SlideReel (rendering).

Drives one presentation through selector, strategy and fallback: a backend whose
preparation fails is excluded and the selector is asked again, while a failure
on any individual slide aborts the whole presentation.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from slidereel.configs.config import Config, config
from slidereel.errors import NoRendererAvailable, PreparationFailure, RenderFailure
from slidereel.rendering.interface import (
    RenderedSlide,
    RenderingStrategy,
    strategy_session,
)
from slidereel.rendering.selector import RendererSelector, build_default_selector


@dataclass
class RenderingMetrics:
    """Timing and outcome counters for one rendering request"""

    renderer_name: str | None = None
    slides_rendered: int = 0
    rendering_failures: int = 0
    total_render_time_ms: float = 0.0
    last_render_time_ms: float = 0.0

    @property
    def average_render_time_ms(self) -> float:
        if self.slides_rendered == 0:
            return 0.0
        return self.total_render_time_ms / self.slides_rendered

    @property
    def success_rate(self) -> float:
        attempts = self.slides_rendered + self.rendering_failures
        if attempts == 0:
            return 100.0
        return self.slides_rendered / attempts * 100

    def record_slide(self, elapsed_ms: float) -> None:
        self.slides_rendered += 1
        self.total_render_time_ms += elapsed_ms
        self.last_render_time_ms = elapsed_ms


@dataclass
class RenderResult:
    renderer: str
    slides: list[RenderedSlide]
    metrics: RenderingMetrics
    failed_renderers: list[str] = field(default_factory=list)

    def save_all(self, presentation_dir: Path) -> list[Path]:
        return [slide.save_to_path(presentation_dir) for slide in self.slides]


class SlideRenderingService:
    """Render every slide of a presentation with automatic backend fallback"""

    def __init__(
        self,
        selector: RendererSelector | None = None,
        settings: Config | None = None,
    ) -> None:
        self.settings = settings or config
        self.selector = selector or build_default_selector(self.settings)

    def render_presentation(
        self,
        document: bytes,
        filename: str,
        priority_list: list[str] | None = None,
        width: int | None = None,
        height: int | None = None,
    ) -> RenderResult:
        priority = priority_list or self.settings.renderer_priority
        width = width or self.settings.render_width
        height = height or self.settings.render_height

        failed: list[str] = []
        last_failure: PreparationFailure | None = None

        while True:
            try:
                strategy = self.selector.select(priority, exclude=failed)
            except NoRendererAvailable as e:
                if last_failure is None:
                    raise
                tried = failed + [name for name in e.tried if name not in failed]
                raise NoRendererAvailable(tried, last_failure.reason) from last_failure

            metrics = RenderingMetrics(renderer_name=strategy.name)
            try:
                with strategy_session(strategy, document, filename) as prepared:
                    slides = self._render_all(prepared, width, height, metrics)
            except PreparationFailure as e:
                logger.warning(f"{e.reason}; trying next renderer")
                failed.append(strategy.name)
                last_failure = e
                continue

            logger.info(
                f"Rendered {metrics.slides_rendered} slides of {filename} with "
                f"{strategy.name} in {metrics.total_render_time_ms:.0f} ms"
            )
            return RenderResult(
                renderer=strategy.name,
                slides=slides,
                metrics=metrics,
                failed_renderers=failed,
            )

    def _render_all(
        self,
        strategy: RenderingStrategy,
        width: int,
        height: int,
        metrics: RenderingMetrics,
    ) -> list[RenderedSlide]:
        slides: list[RenderedSlide] = []
        for slide_number in range(1, strategy.slide_count + 1):
            started = time.perf_counter()
            try:
                slides.append(strategy.render_slide(slide_number, width, height))
            except RenderFailure as e:
                metrics.rendering_failures += 1
                logger.error(f"Aborting presentation: {e.reason}")
                raise
            metrics.record_slide((time.perf_counter() - started) * 1000)
        return slides

    async def render_presentation_async(
        self,
        document: bytes,
        filename: str,
        priority_list: list[str] | None = None,
        width: int | None = None,
        height: int | None = None,
    ) -> RenderResult:
        """Run ``render_presentation`` in a worker thread."""
        return await asyncio.to_thread(
            self.render_presentation, document, filename, priority_list, width, height
        )
