"""
WebSocket gateway for /ws/recognize.

Plays the host role for a recognition session over a WebSocket:
- Query params select the engine and override session attributes
  (lang, grammar, initsil, maxsil, abs_timeout, verbose, nbest).
- Binary messages carry 16-bit linear PCM; they are re-framed into 20 ms
  chunks and fed to the session one at a time (blocking calls run in the
  default executor, awaited in order so feed() never overlaps).
- Text messages: "dtmf:<digit>" is forwarded to the session; "end"/"final"
  flush the partial frame and complete through the recognizer stop, sending
  final_result; "stop" abandons the attempt.
- Server messages: speech_detected, final_result, error.
The session is always destroyed when the socket goes away.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from fastapi import WebSocket, WebSocketDisconnect

from core.errors import InvalidAttribute, SpeechError
from core.results import ResultsType
from core.session import FeedOutcome
from streaming.audio_frames import DEFAULT_FRAME_MS, FrameSplitter, bytes_to_duration_ms

logger = logging.getLogger(__name__)

# query param -> session attribute
ATTRIBUTE_PARAMS = ("lang", "initsil", "maxsil", "abs_timeout", "verbose")
# "end"/"final" stop the stream and return results; "stop" abandons the attempt
FINISH_MESSAGES = ("end", "final")
ABANDON_MESSAGES = ("stop",)


def build_ws_recognize_handler(
    get_engine: Callable[[Optional[str]], Any],
    get_metrics: Optional[Any] = None,
    frame_ms: float = DEFAULT_FRAME_MS,
    receive_timeout_s: float = 300.0,
) -> Callable:
    """
    Build the async WebSocket handler for /ws/recognize.

    Args:
        get_engine: Callable(name or None) -> SpeechEngine (None when unknown).
        get_metrics: Optional module with record_* functions, passed to each session.
        frame_ms: Chunk duration fed to the session.
        receive_timeout_s: Idle time after which the socket is dropped.

    Returns:
        Async function (websocket: WebSocket) -> None for use with FastAPI.
    """
    metrics = get_metrics

    async def handle_ws_recognize(websocket: WebSocket) -> None:
        params = websocket.query_params
        engine = get_engine(params.get("engine"))
        if engine is None:
            await websocket.close(code=1008, reason="Unknown speech engine")
            return

        loop = asyncio.get_event_loop()
        try:
            session = await loop.run_in_executor(None, lambda: engine.create_session(metrics=metrics))
        except SpeechError as e:
            logger.error("Session creation failed: %s", e)
            await websocket.close(code=1011, reason="Recognizer unavailable")
            return

        try:
            for name in ATTRIBUTE_PARAMS:
                if params.get(name) is not None:
                    session.configure(name, params.get(name))
            if params.get("grammar"):
                session.activate_grammar(params.get("grammar"))
            if (params.get("nbest") or "").lower() in ("1", "true", "yes"):
                session.set_results_type(ResultsType.NBEST)
        except InvalidAttribute as e:
            await loop.run_in_executor(None, session.destroy)
            await websocket.close(code=1008, reason=str(e))
            return

        await websocket.accept()
        splitter = FrameSplitter(frame_ms=frame_ms, sample_rate=engine.settings.sample_rate)

        async def send(payload: Dict[str, Any]) -> None:
            try:
                await websocket.send_json(payload)
            except (WebSocketDisconnect, RuntimeError):
                pass

        async def send_final() -> None:
            await send({
                "type": "final_result",
                "reason": session.completion_reason,
                "results": [h.to_dict() for h in session.fetch_results()],
            })

        async def feed_frames(frames: List[bytes]) -> bool:
            """Feed frames in order; True once the attempt completed."""
            for frame in frames:
                outcome = await loop.run_in_executor(None, session.feed, frame)
                if outcome is FeedOutcome.SPEECH_DETECTED:
                    await send({"type": "speech_detected"})
                elif outcome is FeedOutcome.COMPLETED:
                    await send_final()
                    return True
            return False

        async def finish_input() -> None:
            """Feed the partial tail frame, then stop the stream if no deadline did."""
            tail = splitter.flush()
            if tail and await feed_frames([tail]):
                return
            await loop.run_in_executor(None, session.finish)
            await send_final()

        try:
            await loop.run_in_executor(None, session.start)
            while True:
                try:
                    data = await asyncio.wait_for(websocket.receive(), timeout=receive_timeout_s)
                except asyncio.TimeoutError:
                    break
                if data.get("type") == "websocket.disconnect":
                    break
                if data.get("type") != "websocket.receive":
                    continue
                if data.get("bytes") is not None:
                    if await feed_frames(splitter.push(data["bytes"])):
                        break
                    continue
                text = (data.get("text") or "").strip().lower()
                if text in FINISH_MESSAGES:
                    await finish_input()
                    break
                if text in ABANDON_MESSAGES:
                    break
                if text.startswith("dtmf:"):
                    session.dtmf(text[len("dtmf:"):])
        except WebSocketDisconnect:
            pass
        except SpeechError as e:
            await send({"type": "error", "message": str(e)})
        finally:
            logger.debug(
                "Connection closed after %.0f ms of audio",
                bytes_to_duration_ms(splitter.total_pushed_bytes(), engine.settings.sample_rate),
            )
            try:
                await loop.run_in_executor(None, session.destroy)
            except Exception as e:
                logger.warning("Session teardown failed: %s", e)
            try:
                await websocket.close()
            except (WebSocketDisconnect, RuntimeError):
                pass

    return handle_ws_recognize
