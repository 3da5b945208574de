"""Tests for the audio WebSocket endpoint."""

import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi import FastAPI, WebSocketDisconnect
from fastapi.testclient import TestClient

from tablebook.api.routes import audio
from tablebook.api.routes.audio import AudioCallHandler
from tablebook.core.intelligence.session.state import DialogueState
from tablebook.core.scheduling.response import ASK_AGAIN, ASK_FOR

DISCONNECT = {"type": "websocket.disconnect", "code": 1000}


def frame(text=None, data=None) -> dict:
    message = {"type": "websocket.receive"}
    if text is not None:
        message["text"] = text
    if data is not None:
        message["bytes"] = data
    return message


@pytest.fixture
def websocket():
    mock = AsyncMock()
    mock.receive = AsyncMock(return_value=DISCONNECT)
    return mock


@pytest.fixture
def transcriber():
    mock = AsyncMock()
    mock.transcribe = AsyncMock(return_value="")
    return mock


@pytest.fixture
def synthesizer():
    mock = AsyncMock()
    mock.synthesize = AsyncMock(return_value=b"mp3")
    return mock


@pytest.fixture
def handler(websocket, flow, sessions, transcriber, synthesizer):
    return AudioCallHandler(websocket, flow, sessions, transcriber, synthesizer)


async def connect(handler, sessions) -> str:
    """Set up a session the way run() does, without the receive loop."""
    handler.session_id = sessions.create()
    await handler.take_turn("")
    return handler.session_id


class TestAudioCallHandler:
    """Test AudioCallHandler."""

    @pytest.mark.asyncio
    async def test_greeting_on_connect(self, handler, websocket, synthesizer, sessions):
        await handler.run()

        websocket.accept.assert_awaited_once()
        text, voice = synthesizer.synthesize.await_args.args
        assert "Welcome to Test Kitchen" in text
        assert voice == "voice_formal"
        websocket.send_bytes.assert_awaited_once_with(b"mp3")
        assert len(sessions) == 0

    @pytest.mark.asyncio
    async def test_buffered_audio_is_transcribed(
        self, handler, websocket, transcriber, synthesizer
    ):
        websocket.receive.side_effect = [
            frame(data=b"abc"),
            frame(data=b"def"),
            frame(text="end"),
            DISCONNECT,
        ]
        transcriber.transcribe.return_value = "tomorrow"

        await handler.run()

        transcriber.transcribe.assert_awaited_once_with(b"abcdef")
        assert synthesizer.synthesize.await_args.args[0] == ASK_FOR["time"]
        assert websocket.send_bytes.await_count == 2

    @pytest.mark.asyncio
    async def test_empty_end_skips_turn(self, handler, websocket, sessions):
        session_id = await connect(handler, sessions)
        websocket.send_bytes.reset_mock()

        await handler.on_message(frame(text="end"))

        websocket.send_bytes.assert_not_called()
        assert sessions.get(session_id).state == DialogueState.COLLECT_INFO
        assert sessions.get(session_id).slots.has_any() is False

    @pytest.mark.asyncio
    async def test_binary_end_marker(self, handler, transcriber, sessions):
        await connect(handler, sessions)
        await handler.on_message(frame(data=b"audio"))

        await handler.on_message(frame(data=b"end"))

        transcriber.transcribe.assert_awaited_once_with(b"audio")

    @pytest.mark.asyncio
    async def test_buffer_cleared_after_turn(self, handler, transcriber, sessions):
        await connect(handler, sessions)
        await handler.on_message(frame(data=b"first"))
        await handler.on_message(frame(text="end"))

        await handler.on_message(frame(text="end"))

        assert transcriber.transcribe.await_args_list[-1].args == (b"",)

    @pytest.mark.asyncio
    async def test_timeout_frame(self, handler, transcriber, synthesizer, sessions):
        await connect(handler, sessions)

        await handler.on_message(frame(text="timeout"))

        transcriber.transcribe.assert_not_called()
        assert synthesizer.synthesize.await_args.args[0] == ASK_AGAIN["date"]

    @pytest.mark.asyncio
    async def test_booking_event_and_close(
        self, handler, websocket, transcriber, sessions, finalizer
    ):
        websocket.receive.side_effect = [frame(text="end")] * 3
        transcriber.transcribe.side_effect = [
            "I want a table for 4 tomorrow at 7pm",
            "Mahesh Kumar",
            "yes",
        ]

        await handler.run()
        await finalizer.drain()

        event = websocket.send_json.await_args.args[0]
        assert event["type"] == "booking"
        assert event["data"]["name"] == "Mahesh Kumar"
        assert event["data"]["people"] == 4
        websocket.close.assert_awaited_once()
        assert len(sessions) == 0

    @pytest.mark.asyncio
    async def test_client_disconnect(self, handler, websocket, sessions):
        websocket.receive.side_effect = WebSocketDisconnect(code=1001)

        await handler.run()

        websocket.close.assert_not_called()
        assert len(sessions) == 0

    @pytest.mark.asyncio
    async def test_turn_error_closes_call(
        self, websocket, sessions, transcriber, synthesizer
    ):
        flow = MagicMock()
        flow.handle_input = AsyncMock(side_effect=RuntimeError("boom"))
        handler = AudioCallHandler(websocket, flow, sessions, transcriber, synthesizer)

        await handler.run()

        websocket.close.assert_awaited_once()
        assert len(sessions) == 0


class TestAudioRoute:
    """Test the /audio route wiring."""

    @pytest.fixture
    def app(self, flow, sessions, transcriber, synthesizer):
        app = FastAPI()
        app.include_router(audio.router)
        app.state.flow = flow
        app.state.sessions = sessions
        app.state.transcriber = transcriber
        app.state.synthesizer = synthesizer
        return app

    def test_call_over_websocket(self, app, transcriber, synthesizer):
        transcriber.transcribe.return_value = "tomorrow"
        client = TestClient(app)

        with client.websocket_connect("/audio") as ws:
            assert ws.receive_bytes() == b"mp3"

            ws.send_bytes(b"chunk")
            ws.send_text("end")

            assert ws.receive_bytes() == b"mp3"

        transcriber.transcribe.assert_awaited_with(b"chunk")
        assert synthesizer.synthesize.await_args.args[0] == ASK_FOR["time"]
