"""
Unit tests for the HTTP video providers.
"""

import json

import httpx
import pytest

from slidereel.errors import VideoProviderError
from slidereel.video.heygen import HeyGenProvider, estimate_progress, map_status
from slidereel.video.models import (
    JobState,
    VideoProviderType,
    as_number,
    as_progress,
)
from slidereel.video.shotstack import (
    ShotstackProvider,
    SlideSegment,
    build_presentation_edit,
)
from slidereel.video.veo import VeoProvider


class Recorder:
    """MockTransport handler answering from a fixed list of responses."""

    def __init__(self, *responses: httpx.Response) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


class TestHeyGenProvider:
    def make(self, *responses, api_key="hg-key"):
        recorder = Recorder(*responses)
        provider = HeyGenProvider(api_key=api_key, client=recorder.client())
        return provider, recorder

    @pytest.mark.asyncio
    async def test_submit_script(self):
        provider, recorder = self.make(
            httpx.Response(200, json={"data": {"video_id": "vid-1"}})
        )

        job_id = await provider.submit({"script": "Hello there", "avatar_id": "Anna"})

        assert job_id == "vid-1"
        request = recorder.last
        assert request.url.path == "/v2/video/generate"
        assert request.headers["X-Api-Key"] == "hg-key"
        body = json.loads(request.content)
        video_input = body["video_inputs"][0]
        assert video_input["character"]["avatar_id"] == "Anna"
        assert video_input["voice"]["type"] == "text"
        assert video_input["voice"]["input_text"] == "Hello there"

    @pytest.mark.asyncio
    async def test_submit_audio(self):
        provider, recorder = self.make(
            httpx.Response(200, json={"data": {"id": "vid-2"}})
        )

        job_id = await provider.submit({"audio_url": "https://cdn/a.mp3"})

        assert job_id == "vid-2"
        voice = json.loads(recorder.last.content)["video_inputs"][0]["voice"]
        assert voice == {"type": "audio", "audio_url": "https://cdn/a.mp3"}

    @pytest.mark.asyncio
    async def test_submit_requires_script_or_audio(self):
        provider, recorder = self.make()

        with pytest.raises(VideoProviderError, match="script or audio_url"):
            await provider.submit({})
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_unconfigured_provider_refuses_requests(self):
        provider, recorder = self.make(api_key="")

        assert provider.is_available() is False
        with pytest.raises(VideoProviderError, match="not configured"):
            await provider.get_status("vid-1")
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_api_error_carries_status_and_message(self):
        provider, _ = self.make(
            httpx.Response(401, json={"error": {"message": "invalid api key"}})
        )

        with pytest.raises(VideoProviderError) as exc_info:
            await provider.submit({"script": "Hi"})

        assert exc_info.value.status_code == 401
        assert exc_info.value.reason == "HeyGen: invalid api key"

    @pytest.mark.asyncio
    async def test_status_processing_uses_eta(self):
        provider, recorder = self.make(
            httpx.Response(200, json={"data": {"status": "processing", "eta": 30}})
        )

        report = await provider.get_status("vid-1")

        assert recorder.last.url.path == "/v1/video_status.get"
        assert recorder.last.url.params["video_id"] == "vid-1"
        assert report.state is JobState.PROCESSING
        assert report.progress == 90

    @pytest.mark.asyncio
    async def test_status_tolerates_text_numbers(self):
        provider, _ = self.make(
            httpx.Response(
                200,
                json={
                    "data": {"status": "processing", "eta": "120", "duration": "n/a"}
                },
            )
        )

        report = await provider.get_status("vid-1")

        assert report.state is JobState.PROCESSING
        assert report.progress == 60
        assert report.duration is None

    @pytest.mark.asyncio
    async def test_status_completed(self):
        provider, _ = self.make(
            httpx.Response(
                200,
                json={
                    "data": {
                        "status": "completed",
                        "video_url": "https://heygen/v.mp4",
                        "duration": 12.5,
                    }
                },
            )
        )

        report = await provider.get_status("vid-1")

        assert report.state is JobState.COMPLETED
        assert report.progress == 100
        assert report.result_url == "https://heygen/v.mp4"
        assert report.duration == 12.5
        assert report.error_message is None

    @pytest.mark.asyncio
    async def test_status_failed_keeps_error_text(self):
        provider, _ = self.make(
            httpx.Response(
                200,
                json={
                    "data": {
                        "status": "failed",
                        "error": {"message": "quota exceeded"},
                    }
                },
            )
        )

        report = await provider.get_status("vid-1")

        assert report.state is JobState.FAILED
        assert report.error_message == "quota exceeded"

    @pytest.mark.asyncio
    async def test_cancel(self):
        provider, recorder = self.make(httpx.Response(200), httpx.Response(500))

        assert await provider.cancel("vid-1") is True
        assert recorder.last.method == "DELETE"
        assert await provider.cancel("vid-2") is False

    def test_status_mapping(self):
        assert map_status("Completed") is JobState.COMPLETED
        assert map_status("waiting") is JobState.PENDING
        assert map_status(None) is JobState.PENDING
        assert map_status("teleporting") is JobState.PROCESSING

    @pytest.mark.parametrize(
        "state, eta, expected",
        [
            (JobState.PROCESSING, None, 50),
            (JobState.PROCESSING, 150, 50),
            (JobState.PROCESSING, 299, 10),
            (JobState.PROCESSING, 1, 90),
            (JobState.PROCESSING, "30", 90),
            (JobState.PROCESSING, "soon", 50),
            (JobState.PENDING, 10, 0),
            (JobState.COMPLETED, None, 100),
        ],
    )
    def test_progress_estimate(self, state, eta, expected):
        assert estimate_progress(state, eta) == expected

    def test_options(self):
        provider = HeyGenProvider(api_key="k")

        options = provider.get_supported_options()

        assert provider.provider_type is VideoProviderType.AVATAR
        assert options["max_render_duration"] == 300
        assert "talking_avatar" in options["features"]


class TestVeoProvider:
    def make(self, *responses):
        recorder = Recorder(*responses)
        provider = VeoProvider(
            api_key="g-key",
            model="veo-test",
            base_url="https://gemini.test/v1beta/",
            client=recorder.client(),
        )
        return provider, recorder

    @pytest.mark.asyncio
    async def test_submit_prompt(self):
        provider, recorder = self.make(
            httpx.Response(200, json={"name": "models/veo-test/operations/op-1"})
        )

        job_id = await provider.submit(
            {"prompt": "A calm sunrise", "negative_prompt": "text"}
        )

        assert job_id == "models/veo-test/operations/op-1"
        request = recorder.last
        assert request.url.path == "/v1beta/models/veo-test:predictLongRunning"
        assert request.headers["x-goog-api-key"] == "g-key"
        body = json.loads(request.content)
        assert body["instances"] == [{"prompt": "A calm sunrise"}]
        assert body["parameters"]["negativePrompt"] == "text"

    @pytest.mark.asyncio
    async def test_submit_requires_prompt(self):
        provider, _ = self.make()

        with pytest.raises(VideoProviderError, match="prompt is required"):
            await provider.submit({})

    @pytest.mark.asyncio
    async def test_running_operation(self):
        provider, recorder = self.make(
            httpx.Response(
                200, json={"done": False, "metadata": {"progressPercent": 40}}
            )
        )

        report = await provider.get_status("models/veo-test/operations/op-1")

        assert recorder.last.url.path == "/v1beta/models/veo-test/operations/op-1"
        assert report.state is JobState.PROCESSING
        assert report.progress == 40

    @pytest.mark.asyncio
    async def test_finished_operation(self):
        provider, recorder = self.make(
            httpx.Response(
                200,
                json={
                    "done": True,
                    "response": {
                        "generateVideoResponse": {
                            "generatedSamples": [
                                {"video": {"uri": "https://files.test/intro.mp4"}}
                            ]
                        }
                    },
                },
            )
        )

        report = await provider.get_status("op-1")

        assert recorder.last.url.path == "/v1beta/operations/op-1"
        assert report.state is JobState.COMPLETED
        assert report.result_url == "https://files.test/intro.mp4"
        assert report.progress == 100

    @pytest.mark.asyncio
    async def test_failed_operation(self):
        provider, _ = self.make(
            httpx.Response(
                200,
                json={"done": True, "error": {"code": 8, "message": "quota exceeded"}},
            )
        )

        report = await provider.get_status("op-1")

        assert report.state is JobState.FAILED
        assert report.error_message == "quota exceeded"

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        provider, _ = self.make(httpx.Response(200, content=b"<html>"))

        with pytest.raises(VideoProviderError, match="not valid JSON"):
            await provider.get_status("op-1")


class TestShotstackProvider:
    def make(self, *responses):
        recorder = Recorder(*responses)
        provider = ShotstackProvider(
            api_key="ss-key", environment="stage", client=recorder.client()
        )
        return provider, recorder

    @pytest.mark.asyncio
    async def test_submit_edit(self):
        provider, recorder = self.make(
            httpx.Response(201, json={"success": True, "response": {"id": "r-1"}})
        )
        edit = build_presentation_edit([SlideSegment("https://img/1.png", 5.0)])

        job_id = await provider.submit(edit)

        assert job_id == "r-1"
        assert recorder.last.url.path == "/edit/stage/render"
        assert recorder.last.headers["x-api-key"] == "ss-key"
        body = json.loads(recorder.last.content)
        assert body["output"]["format"] == "mp4"

    @pytest.mark.asyncio
    async def test_submit_requires_timeline(self):
        provider, _ = self.make()

        with pytest.raises(VideoProviderError, match="timeline cannot be empty"):
            await provider.submit({"timeline": None})

    @pytest.mark.parametrize(
        "raw, state",
        [
            ("queued", JobState.PENDING),
            ("fetching", JobState.PROCESSING),
            ("rendering", JobState.PROCESSING),
            ("saving", JobState.PROCESSING),
            ("done", JobState.COMPLETED),
            ("failed", JobState.FAILED),
            ("mystery", JobState.PENDING),
        ],
    )
    @pytest.mark.asyncio
    async def test_status_mapping(self, raw, state):
        provider, recorder = self.make(
            httpx.Response(200, json={"response": {"status": raw}})
        )

        report = await provider.get_status("r-1")

        assert recorder.last.url.path == "/edit/stage/render/r-1"
        assert report.state is state
        assert report.raw_status == raw

    @pytest.mark.asyncio
    async def test_completed_render(self):
        provider, _ = self.make(
            httpx.Response(
                200,
                json={
                    "response": {
                        "status": "done",
                        "url": "https://cdn.shotstack/r-1.mp4",
                        "duration": 42.0,
                    }
                },
            )
        )

        report = await provider.get_status("r-1")

        assert report.result_url == "https://cdn.shotstack/r-1.mp4"
        assert report.progress == 100
        assert report.duration == 42.0

    @pytest.mark.asyncio
    async def test_failed_render_without_error_text(self):
        provider, _ = self.make(
            httpx.Response(200, json={"response": {"status": "failed"}})
        )

        report = await provider.get_status("r-1")

        assert report.error_message == "Shotstack render failed"

    @pytest.mark.asyncio
    async def test_cancel_is_unsupported(self):
        provider, recorder = self.make()

        assert await provider.cancel("r-1") is False
        assert recorder.requests == []


class TestPresentationEdit:
    def test_tracks_are_layered_avatar_slides_intro(self):
        edit = build_presentation_edit(
            [
                SlideSegment("https://img/1.png", 5.0, "https://avatar/1.mp4"),
                SlideSegment("https://img/2.png", 0.0),
                SlideSegment("https://img/3.png", 3.0),
            ],
            intro_url="https://intro.mp4",
        )

        avatar_track, slide_track, intro_track = edit["timeline"]["tracks"]
        assert [c["start"] for c in slide_track["clips"]] == [8.0, 13.0]
        assert avatar_track["clips"][0]["asset"]["src"] == "https://avatar/1.mp4"
        assert intro_track["clips"][0]["length"] == 8.0

    def test_without_intro_or_avatars(self):
        edit = build_presentation_edit([SlideSegment("https://img/1.png", 4.0)])

        tracks = edit["timeline"]["tracks"]
        assert len(tracks) == 1
        assert tracks[0]["clips"][0]["start"] == 0.0


class TestPayloadNumbers:
    @pytest.mark.parametrize(
        "value, expected",
        [(12, 12.0), ("12.5", 12.5), (None, None), ("n/a", None), (True, None)],
    )
    def test_as_number(self, value, expected):
        assert as_number(value) == expected

    def test_as_number_rejects_non_finite(self):
        assert as_number("nan") is None
        assert as_number(float("inf")) is None

    @pytest.mark.parametrize(
        "value, expected",
        [(40, 40), ("40.7", 40), (140, 100), (-5, 0), ("soon", None)],
    )
    def test_as_progress(self, value, expected):
        assert as_progress(value) == expected

    @pytest.mark.asyncio
    async def test_veo_text_progress(self):
        recorder = Recorder(
            httpx.Response(
                200, json={"done": False, "metadata": {"progressPercent": "140"}}
            )
        )
        provider = VeoProvider(
            api_key="g-key",
            model="veo-test",
            base_url="https://gemini.test/v1beta/",
            client=recorder.client(),
        )

        report = await provider.get_status("models/veo-test/operations/op-1")

        assert report.state is JobState.PROCESSING
        assert report.progress == 100

    @pytest.mark.asyncio
    async def test_shotstack_junk_numbers(self):
        recorder = Recorder(
            httpx.Response(
                200,
                json={
                    "response": {
                        "status": "rendering",
                        "data": {"progressPercent": "half"},
                        "duration": "12.5",
                    }
                },
            )
        )
        provider = ShotstackProvider(
            api_key="ss-key", environment="stage", client=recorder.client()
        )

        report = await provider.get_status("r-1")

        assert report.progress is None
        assert report.duration == 12.5
