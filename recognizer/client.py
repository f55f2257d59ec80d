"""
Blocking HTTP client for the remote recognizer's streaming protocol.

One client per recognition session; it owns its requests.Session exclusively.
Endpoints:
    GET  /health                          reachability check on connect()
    POST /streaming                       start (JSON body)
    POST /streaming/{stream_id}/audio     raw PCM chunk
    POST /streaming/{stream_id}/stop      terminal call, returns the final response
Nothing is retried; every failure is raised to the caller.
"""
import logging
import uuid
from typing import Any, Dict, Optional

import requests

from config import DEFAULT_REQUEST_TIMEOUT_S, DEFAULT_SERVER_PORT
from core.errors import ConnectionFailed, PreconditionViolation, TransportFailure
from recognizer.responses import RecognizerResponse

logger = logging.getLogger(__name__)


class RecognizerClient:
    """Façade over the recognizer's start / audio / stop exchange."""

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_SERVER_PORT,
        timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            host: Recognizer host name or IP.
            port: Recognizer port.
            timeout_s: Per-request timeout in seconds.
            session: Optional preconfigured requests.Session (tests inject a mock).
        """
        self.base_url = f"http://{host}:{port}"
        self.timeout_s = timeout_s
        self._http = session or requests.Session()
        self._stream_id: Optional[str] = None
        self._closed = False

    @property
    def stream_id(self) -> Optional[str]:
        return self._stream_id

    @property
    def is_streaming(self) -> bool:
        return self._stream_id is not None

    def connect(self) -> None:
        """Check the recognizer is reachable. Raises ConnectionFailed otherwise."""
        try:
            resp = self._http.get(f"{self.base_url}/health", timeout=self.timeout_s)
        except requests.RequestException as e:
            raise ConnectionFailed(f"Could not connect to recognizer ({self.base_url}): {e}") from e
        if not 200 <= resp.status_code < 300:
            raise ConnectionFailed(
                f"Could not connect to recognizer ({self.base_url}): HTTP {resp.status_code}"
            )
        logger.debug("Connected to recognizer at %s", self.base_url)

    def start_streaming(
        self,
        encoding: str,
        sample_rate: int,
        language: str,
        model_name: str,
        engine_id: str,
    ) -> RecognizerResponse:
        """
        Open a recognition stream.

        The status is returned as-is; the caller decides whether it means accepted.
        The stream id is kept only when the recognizer accepts the stream.
        """
        stream_id = uuid.uuid4().hex
        payload = {
            "stream_id": stream_id,
            "encoding": encoding,
            "sample_rate": sample_rate,
            "language": language,
            "model_name": model_name,
            "engine_id": engine_id,
        }
        response = self._post_json(f"{self.base_url}/streaming", payload, "start")
        if response.accepted:
            self._stream_id = stream_id
        return response

    def send_audio(self, chunk: bytes) -> None:
        """Push one PCM chunk. Raises TransportFailure on network or HTTP error."""
        if self._stream_id is None:
            raise PreconditionViolation("send_audio called without an open stream")
        url = f"{self.base_url}/streaming/{self._stream_id}/audio"
        try:
            resp = self._http.post(
                url,
                data=bytes(chunk),
                headers={"Content-Type": "application/octet-stream"},
                timeout=self.timeout_s,
            )
        except requests.RequestException as e:
            raise TransportFailure(f"Streaming data error: {e}") from e
        if not 200 <= resp.status_code < 300:
            raise TransportFailure(f"Streaming data error: HTTP {resp.status_code}")

    def stop_streaming(self) -> RecognizerResponse:
        """
        Close the stream and return the recognizer's final answer.

        Terminal: the stream is considered closed afterwards even if the call fails.
        """
        if self._stream_id is None:
            raise PreconditionViolation("stop_streaming called without an open stream")
        url = f"{self.base_url}/streaming/{self._stream_id}/stop"
        self._stream_id = None
        return self._post_json(url, {}, "stop")

    def close(self) -> None:
        """Release the HTTP session. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        self._stream_id = None
        self._http.close()

    def _post_json(self, url: str, payload: Dict[str, Any], operation: str) -> RecognizerResponse:
        try:
            resp = self._http.post(url, json=payload, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise TransportFailure(f"Streaming {operation} error: {e}") from e
        try:
            body = resp.json()
        except ValueError as e:
            raise TransportFailure(
                f"Streaming {operation} error: non-JSON reply (HTTP {resp.status_code})"
            ) from e
        if not isinstance(body, dict):
            raise TransportFailure(f"Streaming {operation} error: unexpected reply {body!r}")
        return RecognizerResponse.from_json(body)
