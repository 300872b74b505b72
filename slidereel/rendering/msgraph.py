"""
Microsoft Graph rendering backend for SlideReel (rendering).

Uploads the deck to a OneDrive/SharePoint drive, downloads Graph's PDF
conversion of it, rasterises the pages locally with ``pdftoppm`` and deletes the
uploaded item on cleanup. Converted PDFs are cached process-wide by deck
fingerprint, so re-rendering the same deck skips the upload entirely.
"""

from __future__ import annotations

import shutil
import tempfile
import uuid
from pathlib import Path

import httpx
from loguru import logger
from PIL import Image

from slidereel.configs.config import Config, config
from slidereel.errors import PreparationFailure
from slidereel.rendering.interface import RenderingStrategy, fit_to_canvas
from slidereel.rendering.pdf_pages import (
    PdfCache,
    count_pdf_pages,
    fingerprint,
    pdf_cache,
    pdftoppm_available,
    rasterize_pdf_page,
)

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
TOKEN_URL = "https://login.microsoftonline.com/{tenant}/oauth2/v2.0/token"
GRAPH_SCOPE = "https://graph.microsoft.com/.default"


class MSGraphRenderingStrategy(RenderingStrategy):
    """Render slides through the Microsoft Graph PDF conversion"""

    name = "MSGRAPH"

    def __init__(
        self,
        settings: Config | None = None,
        client: httpx.Client | None = None,
        cache: PdfCache | None = None,
    ) -> None:
        super().__init__()
        self.settings = settings or config
        self._client = client
        self._owns_client = client is None
        self._cache = cache or pdf_cache
        self._token: str | None = None
        self._item_id: str | None = None
        self._work_dir: Path | None = None
        self._pdf_path: Path | None = None
        self._page_count = 0

    @property
    def strategy_name(self) -> str:
        return "Microsoft Graph"

    def is_available(self) -> bool:
        return self.settings.msgraph_configured and pdftoppm_available()

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.settings.http_timeout)
        return self._client

    def _authenticate(self) -> str:
        if self._token is not None:
            return self._token
        response = self.client.post(
            TOKEN_URL.format(tenant=self.settings.msgraph_tenant_id),
            data={
                "grant_type": "client_credentials",
                "client_id": self.settings.msgraph_client_id,
                "client_secret": self.settings.msgraph_client_secret,
                "scope": GRAPH_SCOPE,
            },
        )
        response.raise_for_status()
        token = response.json().get("access_token")
        if not token:
            raise PreparationFailure(self.name, "token response had no access_token")
        self._token = token
        return token

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._authenticate()}"}

    def _drive_url(self, path: str) -> str:
        return f"{GRAPH_BASE_URL}/drives/{self.settings.msgraph_drive_id}{path}"

    def _upload(self, document: bytes, filename: str) -> str:
        remote_name = f"{uuid.uuid4().hex[:8]}-{Path(filename).name}"
        url = self._drive_url(
            f"/root:/{self.settings.msgraph_folder}/{remote_name}:/content"
        )
        logger.info(f"Uploading {filename} to Graph drive ({len(document)} bytes)")
        response = self.client.put(url, content=document, headers=self._headers())
        response.raise_for_status()
        item_id = response.json().get("id")
        if not item_id:
            raise PreparationFailure(self.name, "upload response had no item id")
        return item_id

    def _download_pdf(self, item_id: str) -> bytes:
        response = self.client.get(
            self._drive_url(f"/items/{item_id}/content"),
            params={"format": "pdf"},
            headers=self._headers(),
            follow_redirects=True,
        )
        response.raise_for_status()
        return response.content

    def _prepare(self, document: bytes, filename: str) -> None:
        key = fingerprint(document)
        pdf_bytes = self._cache.get(key)
        if pdf_bytes is None:
            try:
                self._item_id = self._upload(document, filename)
                pdf_bytes = self._download_pdf(self._item_id)
            except httpx.HTTPStatusError as e:
                raise PreparationFailure(
                    self.name,
                    f"Graph API returned {e.response.status_code} "
                    f"for {e.request.url.path}",
                ) from e
            except httpx.HTTPError as e:
                raise PreparationFailure(
                    self.name, f"Graph API request failed: {e}"
                ) from e
            self._cache.put(key, pdf_bytes)
        else:
            logger.info(f"Using cached Graph conversion for {filename}")

        self._work_dir = Path(tempfile.mkdtemp(prefix="slidereel-graph-"))
        self._pdf_path = self._work_dir / "presentation.pdf"
        self._pdf_path.write_bytes(pdf_bytes)
        self._page_count = count_pdf_pages(self._pdf_path)

    def _count_slides(self) -> int:
        return self._page_count

    def _render(self, slide_number: int, width: int, height: int) -> Image.Image:
        assert self._pdf_path is not None and self._work_dir is not None
        page = rasterize_pdf_page(
            self._pdf_path, slide_number, self._work_dir, self.settings.render_dpi
        )
        return fit_to_canvas(page, width, height)

    def _release(self) -> None:
        errors: list[str] = []
        item_id, self._item_id = self._item_id, None
        if item_id is not None:
            try:
                response = self.client.delete(
                    self._drive_url(f"/items/{item_id}"), headers=self._headers()
                )
                if response.status_code not in (204, 404):
                    errors.append(f"delete returned {response.status_code}")
            except httpx.HTTPError as e:
                errors.append(f"delete failed: {e}")

        work_dir, self._work_dir = self._work_dir, None
        self._pdf_path = None
        if work_dir is not None:
            shutil.rmtree(work_dir, ignore_errors=True)

        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

        if errors:
            raise RuntimeError(f"remote item {item_id}: {'; '.join(errors)}")
