"""
Rendering Strategy Interface

Each rendering backend turns one presentation document into per-slide raster
images. A strategy instance belongs to exactly one presentation request and
moves through ``UNPREPARED -> PREPARED -> CLEANED``; the base class enforces that
lifecycle so concrete backends only implement the backend-specific hooks.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from loguru import logger
from PIL import Image

from slidereel.errors import IllegalStateError, PreparationFailure, RenderFailure


class StrategyState(str, Enum):
    UNPREPARED = "unprepared"
    PREPARED = "prepared"
    CLEANED = "cleaned"


@dataclass
class RenderedSlide:
    """A rendered slide with its image data."""

    slide_number: int
    image: Image.Image
    width: int
    height: int

    def save_to_path(self, presentation_dir: Path) -> Path:
        """Save the slide as ``slides/slide-<n>.png`` under the presentation dir."""
        slide_images_dir = presentation_dir / "slides"
        slide_images_dir.mkdir(parents=True, exist_ok=True)
        image_path = slide_images_dir / f"slide-{self.slide_number}.png"
        self.image.save(image_path, "PNG")
        return image_path


def fit_to_canvas(source: Image.Image, width: int, height: int) -> Image.Image:
    """Scale ``source`` proportionally and centre it on a white canvas."""
    scale = min(width / source.width, height / source.height)
    scaled_width = max(1, round(source.width * scale))
    scaled_height = max(1, round(source.height * scale))
    resized = source.convert("RGB").resize(
        (scaled_width, scaled_height), Image.Resampling.LANCZOS
    )
    canvas = Image.new("RGB", (width, height), "#ffffff")
    canvas.paste(resized, ((width - scaled_width) // 2, (height - scaled_height) // 2))
    return canvas


class RenderingStrategy(ABC):
    """Abstract base for slide rendering backends"""

    #: Registry key, upper case (e.g. ``"LIBREOFFICE"``)
    name: str = ""

    def __init__(self) -> None:
        self._state = StrategyState.UNPREPARED

    @property
    def state(self) -> StrategyState:
        return self._state

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the backend is installed/configured on this host"""
        raise NotImplementedError

    @property
    @abstractmethod
    def strategy_name(self) -> str:
        """Human-readable backend name"""
        raise NotImplementedError

    @abstractmethod
    def _prepare(self, document: bytes, filename: str) -> None:
        """Backend-specific setup: load in process, or upload and convert."""
        raise NotImplementedError

    @abstractmethod
    def _count_slides(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def _render(self, slide_number: int, width: int, height: int) -> Image.Image:
        """Return an image of exactly ``width`` x ``height`` pixels."""
        raise NotImplementedError

    @abstractmethod
    def _release(self) -> None:
        """Release every backend resource. May raise; ``cleanup`` contains it."""
        raise NotImplementedError

    def prepare_for_rendering(self, document: bytes, filename: str) -> None:
        if self._state is not StrategyState.UNPREPARED:
            raise IllegalStateError(
                f"{self.name} renderer cannot be prepared from state "
                f"{self._state.value}"
            )
        logger.info(
            f"Preparing {self.strategy_name} for {filename} ({len(document)} bytes)"
        )
        try:
            self._prepare(document, filename)
        except PreparationFailure:
            raise
        except Exception as e:
            logger.error(f"Failed to prepare {self.name} rendering: {e}")
            raise PreparationFailure(self.name, str(e)) from e
        self._state = StrategyState.PREPARED

    @property
    def slide_count(self) -> int:
        self._require_prepared()
        return self._count_slides()

    def render_slide(self, slide_number: int, width: int, height: int) -> RenderedSlide:
        self._require_prepared()
        if width <= 0 or height <= 0:
            raise RenderFailure(
                self.name, slide_number, f"invalid target size {width}x{height}"
            )
        total = self._count_slides()
        if slide_number < 1 or slide_number > total:
            raise RenderFailure(
                self.name,
                slide_number,
                f"slide number out of range, presentation has {total} slides",
            )
        try:
            image = self._render(slide_number, width, height)
        except RenderFailure:
            raise
        except Exception as e:
            logger.error(f"Failed to render slide {slide_number}: {e}")
            raise RenderFailure(self.name, slide_number, str(e)) from e
        if image.size != (width, height):
            image = fit_to_canvas(image, width, height)
        return RenderedSlide(slide_number, image, width, height)

    def cleanup(self) -> None:
        """Release resources. Never raises and may be called repeatedly."""
        if self._state is StrategyState.CLEANED:
            return
        try:
            self._release()
        except Exception as e:  # noqa: BLE001
            logger.warning(f"Failed to clean up {self.name} renderer: {e}")
        self._state = StrategyState.CLEANED

    def _require_prepared(self) -> None:
        if self._state is not StrategyState.PREPARED:
            raise IllegalStateError(
                f"{self.name} renderer not prepared - call prepare_for_rendering first"
            )


@contextmanager
def strategy_session(
    strategy: RenderingStrategy, document: bytes, filename: str
) -> Iterator[RenderingStrategy]:
    """Prepare ``strategy`` and guarantee ``cleanup`` on every exit path."""
    try:
        strategy.prepare_for_rendering(document, filename)
        yield strategy
    finally:
        strategy.cleanup()
