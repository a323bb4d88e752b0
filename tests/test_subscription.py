"""Tests for EventSubscription."""

import asyncio
import json

import httpx

from agui_stream.client import (
    EventDecoder,
    EventSubscription,
    NotEventStreamError,
    StreamStatusError,
)

from helpers import SSE_BODY


def sse_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def collecting_decoder():
    seen = []
    decoder = EventDecoder(on_unknown=seen.append)
    return decoder, seen


class TestEventSubscription:
    """Tests for EventSubscription.run()."""

    async def test_frames_dispatched_in_order(self):
        """Test that every frame reaches the decoder in order."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200, content=SSE_BODY.encode(), headers={"Content-Type": "text/event-stream"}
            )

        decoder, seen = collecting_decoder()
        errors = []
        async with sse_client(handler) as client:
            subscription = EventSubscription(
                "http://test/api/chat",
                decoder,
                method="POST",
                json={"question": "2+2?"},
                client=client,
                on_error=errors.append,
            )
            await subscription.run()

        assert [e.type for e in seen] == [
            "RUN_STARTED",
            "TEXT_MESSAGE_START",
            "TEXT_MESSAGE_CONTENT",
            "TEXT_MESSAGE_END",
            "RUN_FINISHED",
        ]
        assert subscription.frames_received == 5
        assert errors == []
        assert requests[0].method == "POST"
        assert requests[0].headers["Accept"] == "text/event-stream"
        assert json.loads(requests[0].content) == {"question": "2+2?"}
        assert subscription.terminated

    async def test_get_with_params(self):
        """Test that query params are sent for GET subscriptions."""
        urls = []

        def handler(request):
            urls.append(str(request.url))
            return httpx.Response(200, content=b"")

        decoder, _ = collecting_decoder()
        async with sse_client(handler) as client:
            await EventSubscription(
                "http://test/api/chat", decoder, params={"question": "hi"}, client=client
            ).run()

        assert urls == ["http://test/api/chat?question=hi"]

    async def test_trailing_frame_without_blank_line(self):
        """Test that a frame cut off by end of stream is still delivered."""

        def handler(request):
            return httpx.Response(200, content=b'data: {"type":"RUN_ERROR","message":"x"}')

        decoder, seen = collecting_decoder()
        async with sse_client(handler) as client:
            subscription = EventSubscription("http://test/", decoder, client=client)
            await subscription.run()

        assert [e.message for e in seen] == ["x"]
        assert subscription.terminated

    async def test_bad_frames_do_not_end_subscription(self):
        """Test that malformed frames go to the unknown handler and reading continues."""
        body = (
            "data: {oops\n\n"
            "data: " + "[" * 200_000 + "\n\n"
            'data: {"type":"RUN_FINISHED","thread_id":"r","run_id":"r"}\n\n'
        )

        def handler(request):
            return httpx.Response(200, content=body.encode())

        order = []
        decoder = EventDecoder(
            handlers={"RUN_FINISHED": lambda event: order.append(("finished", event.run_id))},
            on_unknown=lambda data: order.append(("unknown", data[:6])),
        )
        errors = []
        async with sse_client(handler) as client:
            subscription = EventSubscription(
                "http://test/", decoder, client=client, on_error=errors.append
            )
            await subscription.run()

        assert order == [("unknown", "{oops"), ("unknown", "[" * 6), ("finished", "r")]
        assert subscription.frames_received == 3
        assert errors == []

    async def test_error_status_reported_on_error_channel(self):
        """Test that a 500 goes to on_error, not to an event handler."""

        def handler(request):
            return httpx.Response(500, json={"error": "Internal server error"})

        decoder, seen = collecting_decoder()
        errors = []
        async with sse_client(handler) as client:
            await EventSubscription(
                "http://test/", decoder, client=client, on_error=errors.append
            ).run()

        assert seen == []
        assert len(errors) == 1
        assert isinstance(errors[0], StreamStatusError)
        assert errors[0].status_code == 500
        assert "Internal server error" in errors[0].body

    async def test_json_response_reported_on_error_channel(self):
        """Test that a 200 JSON answer is reported instead of read as frames."""

        def handler(request):
            return httpx.Response(200, json={"summary": "4"})

        decoder, seen = collecting_decoder()
        errors = []
        async with sse_client(handler) as client:
            subscription = EventSubscription(
                "http://test/", decoder, client=client, on_error=errors.append
            )
            await subscription.run()

        assert seen == []
        assert len(errors) == 1
        assert isinstance(errors[0], NotEventStreamError)
        assert errors[0].content_type == "application/json"
        assert "summary" in errors[0].body
        assert subscription.frames_received == 0

    async def test_stream_without_terminal_frame(self):
        """Test that terminated stays false when the stream stops early."""

        def handler(request):
            return httpx.Response(
                200, content=b'data: {"type":"RUN_STARTED","thread_id":"r","run_id":"r"}\n\n'
            )

        decoder, seen = collecting_decoder()
        async with sse_client(handler) as client:
            subscription = EventSubscription("http://test/", decoder, client=client)
            await subscription.run()

        assert len(seen) == 1
        assert not subscription.terminated

    async def test_connection_error_not_retried(self):
        """Test that a connection failure is reported once and never retried."""
        attempts = []

        def handler(request):
            attempts.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        decoder, seen = collecting_decoder()
        errors = []
        async with sse_client(handler) as client:
            subscription = EventSubscription(
                "http://test/", decoder, client=client, on_error=errors.append
            )
            await subscription.run()

        assert len(attempts) == 1
        assert len(errors) == 1
        assert isinstance(errors[0], httpx.ConnectError)
        assert seen == []
        assert not subscription.running

    async def test_failing_error_handler_contained(self):
        def handler(request):
            return httpx.Response(404, text="missing")

        def explode(error):
            raise RuntimeError("handler bug")

        decoder, _ = collecting_decoder()
        async with sse_client(handler) as client:
            await EventSubscription("http://test/", decoder, client=client, on_error=explode).run()

    async def test_shared_client_left_open(self):
        """Test that a caller-supplied client is not closed."""

        def handler(request):
            return httpx.Response(200, content=b"")

        decoder, _ = collecting_decoder()
        async with sse_client(handler) as client:
            await EventSubscription("http://test/", decoder, client=client).run()
            assert not client.is_closed


class TestSubscriptionLifecycle:
    """Tests for start/stop/wait."""

    async def test_start_and_wait(self):
        def handler(request):
            return httpx.Response(200, content=SSE_BODY.encode())

        decoder, seen = collecting_decoder()
        async with sse_client(handler) as client:
            subscription = EventSubscription("http://test/", decoder, client=client)
            await subscription.start()
            await subscription.wait()

        assert len(seen) == 5

    async def test_stop_cancels_reading(self):
        """Test that stop ends a subscription whose stream never finishes."""
        first_frame = asyncio.Event()

        async def endless():
            yield b'data: {"type":"RUN_STARTED","thread_id":"t","run_id":"r"}\n\n'
            first_frame.set()
            await asyncio.Event().wait()

        def handler(request):
            return httpx.Response(200, content=endless())

        decoder, seen = collecting_decoder()
        async with sse_client(handler) as client:
            subscription = EventSubscription("http://test/", decoder, client=client)
            await subscription.start()
            await asyncio.wait_for(first_frame.wait(), timeout=1)
            await subscription.stop()

        assert not subscription.running
        assert subscription.frames_received <= 1

    async def test_stop_without_start(self):
        decoder, _ = collecting_decoder()
        subscription = EventSubscription("http://test/", decoder)
        await subscription.stop()
        await subscription.wait()
