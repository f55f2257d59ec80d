"""
Shared test doubles: an in-memory recognizer client, a settable clock and PCM chunks.
"""
import numpy as np

from recognizer.responses import RecognizerResponse

# 20 ms at 8 kHz, 16-bit mono = 160 samples
FRAME_SAMPLES = 160
SILENT_CHUNK = b"\x00" * (FRAME_SAMPLES * 2)
LOUD_CHUNK = np.full(FRAME_SAMPLES, 5000, dtype="<i2").tobytes()


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


class FakeClient:
    """Records every protocol call in order; failures are injected through attributes."""

    def __init__(self):
        self.start_response = RecognizerResponse(status=201, message="Created")
        self.stop_response = RecognizerResponse(
            status=200, message="OK", utterance="quero falar com atendente",
            intent="atendimento", confidence=0.8, probability=0.9,
        )
        self.calls = []
        self.sent = []
        self.is_streaming = False
        self.closed = False
        self.fail_start = None
        self.fail_send = None
        self.fail_stop = None

    def connect(self):
        self.calls.append(("connect",))

    def start_streaming(self, encoding, sample_rate, language, model_name, engine_id):
        self.calls.append(("start", encoding, sample_rate, language, model_name, engine_id))
        if self.fail_start is not None:
            raise self.fail_start
        if self.start_response.accepted:
            self.is_streaming = True
        return self.start_response

    def send_audio(self, chunk):
        if self.fail_send is not None:
            raise self.fail_send
        self.sent.append(chunk)

    def stop_streaming(self):
        self.calls.append(("stop",))
        self.is_streaming = False
        if self.fail_stop is not None:
            raise self.fail_stop
        return self.stop_response

    def close(self):
        self.calls.append(("close",))
        self.closed = True
