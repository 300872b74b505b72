"""
Unit tests for the Microsoft Graph rendering backend.
"""

import io
from unittest.mock import patch

import httpx
import PyPDF2
import pytest
from PIL import Image

from slidereel.errors import PreparationFailure
from slidereel.rendering.interface import StrategyState, strategy_session
from slidereel.rendering.msgraph import MSGraphRenderingStrategy
from slidereel.rendering.pdf_pages import PdfCache


def pdf_bytes(pages):
    writer = PyPDF2.PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=720, height=540)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


class GraphStub:
    """Minimal Graph API: token, upload, PDF download and delete."""

    def __init__(self, pages=2, upload_status=200, delete_status=204):
        self.pdf = pdf_bytes(pages)
        self.upload_status = upload_status
        self.delete_status = delete_status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.url.host == "login.microsoftonline.com":
            return httpx.Response(200, json={"access_token": "token-1"})
        if request.method == "PUT" and path.endswith(":/content"):
            if self.upload_status >= 400:
                return httpx.Response(self.upload_status, json={"error": "quota"})
            return httpx.Response(201, json={"id": "item-1"})
        if request.method == "GET" and path.endswith("/items/item-1/content"):
            assert request.url.params["format"] == "pdf"
            return httpx.Response(200, content=self.pdf)
        if request.method == "DELETE" and path.endswith("/items/item-1"):
            return httpx.Response(self.delete_status)
        return httpx.Response(404)

    def methods(self):
        return [r.method for r in self.requests if r.url.host == "graph.microsoft.com"]


@pytest.fixture
def graph_settings(settings):
    settings.msgraph_enabled = True
    settings.msgraph_tenant_id = "tenant-1"
    settings.msgraph_client_id = "client-1"
    settings.msgraph_client_secret = "secret"
    settings.msgraph_drive_id = "drive-1"
    return settings


def make_strategy(settings, stub, cache):
    client = httpx.Client(transport=httpx.MockTransport(stub))
    return MSGraphRenderingStrategy(settings, client=client, cache=cache)


class TestMSGraphRenderingStrategy:
    def test_availability_needs_credentials_and_pdftoppm(self, graph_settings):
        with patch(
            "slidereel.rendering.msgraph.pdftoppm_available", return_value=True
        ):
            assert MSGraphRenderingStrategy(graph_settings).is_available()
            graph_settings.msgraph_drive_id = None
            assert not MSGraphRenderingStrategy(graph_settings).is_available()

    def test_upload_convert_render_and_delete(self, graph_settings):
        stub = GraphStub(pages=2)
        strategy = make_strategy(graph_settings, stub, PdfCache())

        with patch(
            "slidereel.rendering.msgraph.rasterize_pdf_page",
            return_value=Image.new("RGB", (1500, 1125), "#445566"),
        ):
            with strategy_session(strategy, b"deck", "deck.pptx") as prepared:
                work_dir = strategy._work_dir
                assert prepared.slide_count == 2
                rendered = prepared.render_slide(1, 320, 180)

        assert rendered.image.size == (320, 180)
        assert stub.methods() == ["PUT", "GET", "DELETE"]
        upload = stub.requests[1]
        assert upload.headers["Authorization"] == "Bearer token-1"
        assert "/drives/drive-1/root:/slidereel-temp/" in upload.url.path
        assert upload.url.path.endswith("-deck.pptx:/content")
        assert not work_dir.exists()
        assert strategy.state is StrategyState.CLEANED

    def test_cached_conversion_skips_upload(self, graph_settings):
        cache = PdfCache()
        first = GraphStub()
        warm = make_strategy(graph_settings, first, cache)
        with strategy_session(warm, b"deck", "a"):
            pass

        second = GraphStub()
        strategy = make_strategy(graph_settings, second, cache)
        with strategy_session(strategy, b"deck", "a") as prepared:
            assert prepared.slide_count == 2

        assert len(cache) == 1
        assert second.requests == []

    def test_upload_error_fails_preparation(self, graph_settings):
        stub = GraphStub(upload_status=507)
        cache = PdfCache()
        strategy = make_strategy(graph_settings, stub, cache)

        with pytest.raises(PreparationFailure, match="Graph API returned 507"):
            strategy.prepare_for_rendering(b"deck", "deck.pptx")

        strategy.cleanup()
        assert len(cache) == 0

    def test_failed_remote_delete_does_not_raise(self, graph_settings):
        stub = GraphStub(delete_status=500)
        strategy = make_strategy(graph_settings, stub, PdfCache())
        strategy.prepare_for_rendering(b"deck", "deck.pptx")

        strategy.cleanup()
        strategy.cleanup()

        assert strategy.state is StrategyState.CLEANED
        assert stub.methods().count("DELETE") == 1
