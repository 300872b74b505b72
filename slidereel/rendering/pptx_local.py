"""
In-process PPTX rendering backend for SlideReel (rendering).

Loads the deck with python-pptx and draws each slide with Pillow: background
fill, filled shapes, pictures and text frames, scaled from the EMU canvas to the
requested pixel size. The output is an approximation of what PowerPoint draws,
but the backend needs no external binaries and is always available, which makes
it the default fallback.
"""

from __future__ import annotations

import io
from typing import Any

from loguru import logger
from PIL import Image, ImageDraw, ImageFont
from pptx import Presentation
from pptx.enum.dml import MSO_FILL
from pptx.enum.shapes import MSO_SHAPE_TYPE
from pptx.util import Pt

from slidereel.rendering.interface import RenderingStrategy, fit_to_canvas

DEFAULT_FONT_SIZE = Pt(18)
FONT_CANDIDATES = ("DejaVuSans.ttf", "Arial.ttf", "LiberationSans-Regular.ttf")

FontType = ImageFont.FreeTypeFont | ImageFont.ImageFont


def _load_font(size_px: int) -> FontType:
    size_px = max(size_px, 6)
    for candidate in FONT_CANDIDATES:
        try:
            return ImageFont.truetype(candidate, size_px)
        except OSError:
            continue
    return ImageFont.load_default(size=size_px)


def _solid_rgb(fill: Any) -> tuple[int, int, int] | None:
    """Return the RGB of a solid fill, or None for anything else."""
    try:
        if fill.type != MSO_FILL.SOLID:
            return None
        rgb = fill.fore_color.rgb
    except (AttributeError, TypeError, ValueError):
        # theme colours and inherited fills have no explicit RGB
        return None
    return (rgb[0], rgb[1], rgb[2])


def _shape_type(shape: Any) -> Any:
    try:
        return shape.shape_type
    except NotImplementedError:
        # unrecognised autoshape geometry
        return None


class PptxRenderingStrategy(RenderingStrategy):
    """Render slides in process with python-pptx and Pillow"""

    name = "PPTX"

    def __init__(self) -> None:
        super().__init__()
        self._presentation: Any = None
        self._slides: list[Any] = []

    @property
    def strategy_name(self) -> str:
        return "python-pptx"

    def is_available(self) -> bool:
        return True

    def _prepare(self, document: bytes, filename: str) -> None:
        self._presentation = Presentation(io.BytesIO(document))
        self._slides = list(self._presentation.slides)
        logger.info(f"Loaded {filename} with {len(self._slides)} slides")

    def _count_slides(self) -> int:
        return len(self._slides)

    def _render(self, slide_number: int, width: int, height: int) -> Image.Image:
        slide = self._slides[slide_number - 1]
        slide_width = int(self._presentation.slide_width)
        slide_height = int(self._presentation.slide_height)

        # EMU to pixel factor; the letterbox comes from fit_to_canvas
        scale = min(width / slide_width, height / slide_height)
        canvas_size = (
            max(1, round(slide_width * scale)),
            max(1, round(slide_height * scale)),
        )

        background = _solid_rgb(slide.background.fill) or (255, 255, 255)
        img = Image.new("RGB", canvas_size, background)
        draw = ImageDraw.Draw(img)

        for shape in slide.shapes:
            self._draw_shape(img, draw, shape, scale)

        return fit_to_canvas(img, width, height)

    def _draw_shape(
        self, img: Image.Image, draw: ImageDraw.ImageDraw, shape: Any, scale: float
    ) -> None:
        shape_type = _shape_type(shape)
        if shape_type == MSO_SHAPE_TYPE.GROUP:
            for child in shape.shapes:
                self._draw_shape(img, draw, child, scale)
            return

        if None in (shape.left, shape.top, shape.width, shape.height):
            return
        box = (
            round(shape.left * scale),
            round(shape.top * scale),
            round((shape.left + shape.width) * scale),
            round((shape.top + shape.height) * scale),
        )
        if box[2] <= box[0] or box[3] <= box[1]:
            return

        if hasattr(shape, "fill"):
            fill_rgb = _solid_rgb(shape.fill)
            if fill_rgb is not None:
                draw.rectangle(box, fill=fill_rgb)

        if shape_type == MSO_SHAPE_TYPE.PICTURE or hasattr(shape, "image"):
            self._draw_picture(img, shape, box)

        if getattr(shape, "has_text_frame", False) and shape.text_frame.text.strip():
            self._draw_text(draw, shape.text_frame, box, scale)

    def _draw_picture(
        self, img: Image.Image, shape: Any, box: tuple[int, int, int, int]
    ) -> None:
        try:
            blob = shape.image.blob
        except (AttributeError, ValueError):
            # placeholder without an embedded image
            return
        try:
            with Image.open(io.BytesIO(blob)) as picture:
                resized = picture.convert("RGB").resize(
                    (box[2] - box[0], box[3] - box[1]), Image.Resampling.LANCZOS
                )
        except OSError as e:
            logger.warning(f"Skipping unreadable picture {shape.name}: {e}")
            return
        img.paste(resized, (box[0], box[1]))

    def _draw_text(
        self,
        draw: ImageDraw.ImageDraw,
        text_frame: Any,
        box: tuple[int, int, int, int],
        scale: float,
    ) -> None:
        left, top, right, bottom = box
        max_width = right - left
        y = top
        for paragraph in text_frame.paragraphs:
            text = "".join(run.text for run in paragraph.runs) or paragraph.text
            if not text.strip():
                y += round(DEFAULT_FONT_SIZE * scale)
                continue

            first_run = paragraph.runs[0] if paragraph.runs else None
            size = first_run.font.size if first_run and first_run.font.size else None
            font_px = round((size or DEFAULT_FONT_SIZE) * scale)
            font = _load_font(font_px)
            color = (0, 0, 0)
            if first_run is not None:
                try:
                    if first_run.font.color.type is not None:
                        rgb = first_run.font.color.rgb
                        color = (rgb[0], rgb[1], rgb[2])
                except (AttributeError, TypeError):
                    # theme colour, keep black
                    color = (0, 0, 0)

            line_height = round(font_px * 1.2)
            for line in self._wrap(draw, text, font, max_width):
                if y > bottom:
                    return
                draw.text((left, y), line, fill=color, font=font)
                y += line_height

    def _wrap(
        self,
        draw: ImageDraw.ImageDraw,
        text: str,
        font: FontType,
        max_width: int,
    ) -> list[str]:
        lines: list[str] = []
        for raw_line in text.splitlines() or [text]:
            current = ""
            for word in raw_line.split():
                candidate = f"{current} {word}".strip()
                if current and draw.textlength(candidate, font=font) > max_width:
                    lines.append(current)
                    current = word
                else:
                    current = candidate
            lines.append(current)
        return lines

    def _release(self) -> None:
        self._presentation = None
        self._slides = []
