"""
PDF page rasterisation helpers for SlideReel (rendering).

Both document-engine backends end up with a PDF on disk; this module turns one
PDF page into a Pillow image with ``pdftoppm`` and keeps a process-wide cache of
converted PDFs so the cloud backend never converts the same deck twice.
"""

from __future__ import annotations

import hashlib
import shutil
import subprocess
import threading
from pathlib import Path

import PyPDF2
from loguru import logger
from PIL import Image

from slidereel.configs.config import config


def pdftoppm_available() -> bool:
    return shutil.which("pdftoppm") is not None


def count_pdf_pages(pdf_path: Path) -> int:
    with open(pdf_path, "rb") as file:
        pdf_reader = PyPDF2.PdfReader(file)
        return len(pdf_reader.pages)


def rasterize_pdf_page(
    pdf_path: Path,
    page_number: int,
    work_dir: Path,
    dpi: int | None = None,
    timeout: float | None = None,
) -> Image.Image:
    """
    Convert a single 1-based PDF page to an RGB image using pdftoppm.

    Raises ``RuntimeError`` with pdftoppm's stderr when the conversion fails;
    callers wrap it into their own error type.
    """
    output_stem = work_dir / f"page-{page_number}"
    cmd = [
        "pdftoppm",
        "-png",
        "-f",
        str(page_number),
        "-l",
        str(page_number),
        "-r",
        str(dpi or config.render_dpi),
        "-singlefile",
        str(pdf_path),
        str(output_stem),
    ]
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout or config.pdftoppm_timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise RuntimeError(f"pdftoppm timed out on page {page_number}") from e

    if result.returncode != 0:
        raise RuntimeError(
            f"pdftoppm exited with {result.returncode}: {result.stderr.strip()}"
        )

    generated_file = output_stem.with_suffix(".png")
    if not generated_file.exists():
        raise RuntimeError(f"pdftoppm produced no image for page {page_number}")

    with Image.open(generated_file) as img:
        image = img.convert("RGB")
    generated_file.unlink(missing_ok=True)
    return image


def fingerprint(document: bytes) -> str:
    return hashlib.sha256(document).hexdigest()


class PdfCache:
    """
    Thread-safe cache of converted PDFs keyed by the deck fingerprint.

    The lock only guards dictionary access; conversions and downloads happen
    outside of it, so two concurrent misses may both convert and the later
    ``put`` wins.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, bytes] = {}

    def get(self, key: str) -> bytes | None:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, pdf_bytes: bytes) -> None:
        with self._lock:
            self._entries[key] = pdf_bytes
        logger.debug(f"Cached converted PDF {key[:12]} ({len(pdf_bytes)} bytes)")

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# Process-wide cache shared by every MS Graph strategy instance
pdf_cache = PdfCache()
