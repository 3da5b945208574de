"""
Audio WebSocket Endpoint.

One connection is one phone-style call:

    client -> binary frames (recorded audio), then "end"
    server -> binary frame (reply audio), optional booking event

The session lives exactly as long as the connection.
"""

import logging
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from tablebook.core.intelligence.session.manager import SessionStore
from tablebook.core.scheduling.flow import SILENCE_TIMEOUT, ConversationFlow
from tablebook.core.scheduling.response import DialogueReply
from tablebook.infra.speech import DeepgramTranscriber, ElevenLabsSynthesizer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Audio"])

END_OF_TURN = "end"
SILENCE = "timeout"


class AudioCallHandler:
    """Drives one WebSocket call through the booking dialogue."""

    def __init__(
        self,
        websocket: WebSocket,
        flow: ConversationFlow,
        sessions: SessionStore,
        transcriber: DeepgramTranscriber,
        synthesizer: ElevenLabsSynthesizer,
    ):
        self.websocket = websocket
        self.flow = flow
        self.sessions = sessions
        self.transcriber = transcriber
        self.synthesizer = synthesizer
        self.session_id: Optional[str] = None
        self._buffer = bytearray()
        self._closed = False

    async def run(self) -> None:
        """Serve the call until the client disconnects or the dialogue ends."""
        await self.websocket.accept()
        self.session_id = self.sessions.create()
        logger.info(f"Call connected: {self.session_id}")

        try:
            await self.take_turn("")

            while not self._closed:
                message = await self.websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                await self.on_message(message)

        except WebSocketDisconnect:
            pass
        except Exception as e:
            logger.exception(f"Call {self.session_id} failed: {e}")
            await self.close()
        finally:
            self.sessions.discard(self.session_id)
            logger.info(f"Call disconnected: {self.session_id}")

    async def on_message(self, message: dict) -> None:
        """Handle one received frame."""
        text = message.get("text")
        data = message.get("bytes")

        if text is not None:
            command = text.strip().lower()
            if command == END_OF_TURN:
                await self.end_of_turn()
            elif command == SILENCE:
                await self.take_turn(SILENCE_TIMEOUT)
            else:
                logger.debug(f"Ignoring text frame: {text!r}")
            return

        if data is None:
            return
        if data == END_OF_TURN.encode():
            await self.end_of_turn()
        else:
            self._buffer.extend(data)

    async def end_of_turn(self) -> None:
        """Transcribe the buffered audio and answer it."""
        audio = bytes(self._buffer)
        self._buffer.clear()

        text = await self.transcriber.transcribe(audio)
        if not text.strip():
            logger.debug(f"Empty transcript for {self.session_id}; turn skipped")
            return

        await self.take_turn(text)

    async def take_turn(self, text: str) -> DialogueReply:
        if text:
            logger.info(f"User said: {text}")

        reply = await self.flow.handle_input(self.session_id, text)
        logger.info(f"Bot says: {reply.text}")

        audio = await self.synthesizer.synthesize(reply.text, reply.voice.value)
        await self.websocket.send_bytes(audio)

        if reply.booking is not None:
            await self.websocket.send_json(
                {"type": "booking", "data": reply.booking.to_dict()}
            )

        if reply.should_end:
            await self.close()

        return reply

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self.websocket.close()
        except RuntimeError:
            # Socket already closed by the client.
            logger.debug(f"Socket for {self.session_id} already closed")


@router.websocket("/audio")
async def audio_call(websocket: WebSocket) -> None:
    """Voice booking call over a WebSocket."""
    state = websocket.app.state
    handler = AudioCallHandler(
        websocket,
        flow=state.flow,
        sessions=state.sessions,
        transcriber=state.transcriber,
        synthesizer=state.synthesizer,
    )
    await handler.run()
