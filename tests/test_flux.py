"""Tests for the FLUX submit-then-poll workflow client."""

import json

import httpx
import pytest

from nexusbot.flux import ImageWorkflowClient

URL = "https://api.example.com/workflows/flux-kontext-pro"


class Recorder:
    """MockTransport handler: answers the submit, then replays poll replies."""

    def __init__(self, submit=None, polls=()):
        self.submit = submit if submit is not None else httpx.Response(200, json={"request_id": "req-1"})
        self.polls = list(polls)
        self.submitted = []
        self.poll_count = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/get_result"):
            self.poll_count += 1
            assert json.loads(request.content) == {"id": "req-1"}
            if self.polls:
                reply = self.polls.pop(0)
            else:
                reply = httpx.Response(200, json={"status": "Pending"})
            if isinstance(reply, Exception):
                raise reply
            return reply
        self.submitted.append((request, json.loads(request.content)))
        if isinstance(self.submit, Exception):
            raise self.submit
        return self.submit


def make_client(recorder, max_attempts=60):
    http = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    return ImageWorkflowClient(
        api_key="fw-key", url=URL, poll_interval=0, max_attempts=max_attempts, client=http,
    )


def pending():
    return httpx.Response(200, json={"status": "Pending"})


class TestGenerate:

    @pytest.mark.asyncio
    async def test_success_after_pending_polls(self):
        rec = Recorder(polls=[
            pending(),
            pending(),
            httpx.Response(200, json={"status": "Ready", "result": {"sample": "https://cdn.example.com/a.jpg"}}),
        ])
        client = make_client(rec)

        assert await client.run("generate", "a red fox") == "https://cdn.example.com/a.jpg"
        assert rec.poll_count == 3

        request, body = rec.submitted[0]
        assert body == {"prompt": "a red fox"}
        assert request.headers["Authorization"] == "Bearer fw-key"
        assert str(request.url) == URL

    @pytest.mark.asyncio
    async def test_inline_data_returned_as_is(self):
        rec = Recorder(polls=[
            httpx.Response(200, json={"status": "Complete", "result": {"sample": "iVBORw0KGgo="}}),
        ])
        assert await make_client(rec).run("generate", "x") == "iVBORw0KGgo="

    @pytest.mark.asyncio
    async def test_failed_status_stops_polling(self):
        rec = Recorder(polls=[
            pending(),
            pending(),
            httpx.Response(200, json={"status": "Failed", "details": "nsfw"}),
        ])
        assert await make_client(rec).run("generate", "x") is None
        assert rec.poll_count == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_attempt_budget(self):
        rec = Recorder()
        assert await make_client(rec).run("generate", "x") is None
        assert rec.poll_count == 60

    @pytest.mark.asyncio
    async def test_non_success_and_transport_errors_are_skipped(self):
        rec = Recorder(polls=[
            httpx.Response(502, text="bad gateway"),
            httpx.ConnectError("reset"),
            httpx.Response(200, json={"status": "Finished", "result": {"sample": "https://x/y.png"}}),
        ])
        assert await make_client(rec).run("generate", "x") == "https://x/y.png"
        assert rec.poll_count == 3

    @pytest.mark.asyncio
    async def test_done_without_sample_keeps_polling(self):
        rec = Recorder(polls=[
            httpx.Response(200, json={"status": "Ready", "result": {}}),
            httpx.Response(200, json={"status": "Ready", "result": {"sample": "https://x/z.png"}}),
        ])
        assert await make_client(rec).run("generate", "x") == "https://x/z.png"
        assert rec.poll_count == 2

    @pytest.mark.asyncio
    async def test_missing_request_id_never_polls(self):
        rec = Recorder(submit=httpx.Response(400, json={"error": "bad prompt"}))
        assert await make_client(rec).run("generate", "x") is None
        assert rec.poll_count == 0

    @pytest.mark.asyncio
    async def test_submit_transport_error(self):
        rec = Recorder(submit=httpx.ConnectError("dns"))
        assert await make_client(rec).run("generate", "x") is None
        assert rec.poll_count == 0


class TestEdit:

    @pytest.mark.asyncio
    async def test_edit_sends_input_image(self):
        rec = Recorder(polls=[
            httpx.Response(200, json={"status": "Ready", "result": {"sample": "https://x/e.jpg"}}),
        ])
        assert await make_client(rec).run("edit", "make it blue", "QUJD") == "https://x/e.jpg"
        _, body = rec.submitted[0]
        assert body == {"prompt": "make it blue", "input_image": "data:image/jpeg;base64,QUJD"}

    @pytest.mark.asyncio
    async def test_edit_without_image_is_rejected(self):
        rec = Recorder()
        with pytest.raises(ValueError):
            await make_client(rec).run("edit", "make it blue")
        assert rec.submitted == []

    @pytest.mark.asyncio
    async def test_unknown_mode(self):
        with pytest.raises(ValueError):
            await make_client(Recorder()).run("upscale", "x")


class TestMalformedPolls:

    @pytest.mark.asyncio
    async def test_non_object_result_is_skipped(self):
        rec = Recorder(polls=[
            httpx.Response(200, json={"status": "Ready", "result": "https://x/a.png"}),
            httpx.Response(200, json={"status": "Ready", "result": {"sample": "https://x/b.png"}}),
        ])
        assert await make_client(rec).run("generate", "x") == "https://x/b.png"
        assert rec.poll_count == 2

    @pytest.mark.asyncio
    async def test_non_object_body_is_skipped(self):
        rec = Recorder(polls=[
            httpx.Response(200, json=["Ready"]),
            httpx.Response(200, text="not json"),
            httpx.Response(200, json={"status": "Ready", "result": {"sample": "https://x/c.png"}}),
        ])
        assert await make_client(rec).run("generate", "x") == "https://x/c.png"
        assert rec.poll_count == 3

    @pytest.mark.asyncio
    async def test_malformed_replies_exhaust_budget(self):
        rec = Recorder(polls=[
            httpx.Response(200, json={"status": "Ready", "result": "oops"}) for _ in range(5)
        ])
        assert await make_client(rec, max_attempts=5).run("generate", "x") is None
        assert rec.poll_count == 5
