"""
Shared fixtures for the SlideReel test suite.
"""

import io
from datetime import datetime, timezone

import pytest
from PIL import Image
from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.shapes import MSO_SHAPE
from pptx.util import Inches, Pt

from slidereel.configs.config import Config
from slidereel.rendering.interface import RenderingStrategy


class FakeStrategy(RenderingStrategy):
    """Scriptable rendering backend used by selector and service tests."""

    def __init__(
        self,
        name: str = "FAKE",
        available: bool = True,
        slides: int = 2,
        fail_prepare: str | None = None,
        fail_render_on: int | None = None,
        fail_release: bool = False,
    ) -> None:
        super().__init__()
        self.name = name
        self.available = available
        self.slides = slides
        self.fail_prepare = fail_prepare
        self.fail_render_on = fail_render_on
        self.fail_release = fail_release
        self.prepared_with: tuple[bytes, str] | None = None
        self.rendered: list[int] = []
        self.released = 0

    @property
    def strategy_name(self) -> str:
        return f"Fake {self.name}"

    def is_available(self) -> bool:
        return self.available

    def _prepare(self, document: bytes, filename: str) -> None:
        if self.fail_prepare:
            raise RuntimeError(self.fail_prepare)
        self.prepared_with = (document, filename)

    def _count_slides(self) -> int:
        return self.slides

    def _render(self, slide_number: int, width: int, height: int) -> Image.Image:
        if slide_number == self.fail_render_on:
            raise RuntimeError("backend crashed")
        self.rendered.append(slide_number)
        # half width on purpose, the base class letterboxes it
        return Image.new("RGB", (max(1, width // 2), height), "#ff0000")

    def _release(self) -> None:
        self.released += 1
        if self.fail_release:
            raise OSError("temporary directory vanished")


@pytest.fixture
def fake_strategy_cls() -> type[FakeStrategy]:
    return FakeStrategy


@pytest.fixture
def deck_bytes() -> bytes:
    """A three slide deck with titles, body text and a filled rectangle."""
    prs = Presentation()
    for number in range(1, 4):
        slide = prs.slides.add_slide(prs.slide_layouts[1])
        slide.shapes.title.text = f"Slide {number}"
        slide.placeholders[1].text = "First point\nSecond point with more words"
        box = slide.shapes.add_shape(
            MSO_SHAPE.RECTANGLE, Inches(6), Inches(5), Inches(2), Inches(1)
        )
        box.fill.solid()
        box.fill.fore_color.rgb = RGBColor(0x20, 0x40, 0x80)
        box.text_frame.text = "Note"
        box.text_frame.paragraphs[0].runs[0].font.size = Pt(12)

    buffer = io.BytesIO()
    prs.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> Config:
    """A Config isolated from the developer's environment."""
    for key in (
        "SHOTSTACK_API_KEY",
        "HEYGEN_API_KEY",
        "GOOGLE_GEMINI_API_KEY",
        "MSGRAPH_ENABLED",
        "DEFAULT_VIDEO_PROVIDER",
        "DEFAULT_RENDERER",
        "RENDERER_PRIORITY",
        "JOB_STORE",
    ):
        monkeypatch.delenv(key, raising=False)
    return Config()


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
