"""
LibreOffice rendering backend for SlideReel (rendering).

Converts the deck to PDF with a headless ``soffice`` into a private temporary
directory and rasterises pages with ``pdftoppm``.
"""

from __future__ import annotations

import shutil
import subprocess
import tempfile
from pathlib import Path

from loguru import logger
from PIL import Image

from slidereel.configs.config import config
from slidereel.errors import PreparationFailure
from slidereel.rendering.interface import RenderingStrategy, fit_to_canvas
from slidereel.rendering.pdf_pages import (
    count_pdf_pages,
    pdftoppm_available,
    rasterize_pdf_page,
)

SOFFICE_BINARIES = ("soffice", "libreoffice")


def find_soffice() -> str | None:
    for binary in SOFFICE_BINARIES:
        path = shutil.which(binary)
        if path:
            return path
    return None


class LibreOfficeRenderingStrategy(RenderingStrategy):
    """Render slides through a headless LibreOffice PDF export"""

    name = "LIBREOFFICE"

    def __init__(self, timeout: float | None = None, dpi: int | None = None) -> None:
        super().__init__()
        self.timeout = timeout or config.soffice_timeout
        self.dpi = dpi or config.render_dpi
        self._work_dir: Path | None = None
        self._pdf_path: Path | None = None
        self._page_count = 0

    @property
    def strategy_name(self) -> str:
        return "LibreOffice"

    def is_available(self) -> bool:
        return find_soffice() is not None and pdftoppm_available()

    def _prepare(self, document: bytes, filename: str) -> None:
        soffice = find_soffice()
        if soffice is None:
            raise PreparationFailure(self.name, "soffice binary not found on PATH")

        self._work_dir = Path(tempfile.mkdtemp(prefix="slidereel-lo-"))
        source_name = Path(filename).name or "presentation.pptx"
        source_path = self._work_dir / source_name
        source_path.write_bytes(document)

        cmd = [
            soffice,
            "--headless",
            "--convert-to",
            "pdf",
            "--outdir",
            str(self._work_dir),
            str(source_path),
        ]
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, timeout=self.timeout
            )
        except subprocess.TimeoutExpired as e:
            raise PreparationFailure(
                self.name, f"soffice conversion timed out after {self.timeout:g}s"
            ) from e

        pdf_path = source_path.with_suffix(".pdf")
        if result.returncode != 0 or not pdf_path.exists():
            detail = result.stderr.strip() or "no PDF produced"
            raise PreparationFailure(self.name, f"soffice conversion failed: {detail}")

        self._pdf_path = pdf_path
        self._page_count = count_pdf_pages(pdf_path)
        logger.info(f"LibreOffice converted {filename} into {self._page_count} pages")

    def _count_slides(self) -> int:
        return self._page_count

    def _render(self, slide_number: int, width: int, height: int) -> Image.Image:
        assert self._pdf_path is not None and self._work_dir is not None
        page = rasterize_pdf_page(
            self._pdf_path, slide_number, self._work_dir, self.dpi
        )
        return fit_to_canvas(page, width, height)

    def _release(self) -> None:
        work_dir, self._work_dir = self._work_dir, None
        self._pdf_path = None
        if work_dir is not None:
            shutil.rmtree(work_dir, ignore_errors=False)
