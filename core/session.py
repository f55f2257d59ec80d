"""
Recognition session state machine.

One session per host channel. The host drives it one chunk at a time:

    start()  -> streaming start acknowledged, state READY
    feed()   -> VAD + deadline checks; audio forwarded to the recognizer
                until a deadline trips, then stop + result assembly -> DONE
    finish() -> host ends input early; stop + result assembly -> DONE
    fetch_results() -> hypotheses once DONE
    destroy() -> stops an open stream, then releases the connection

Feed decision order (first match wins):
    1. no speech yet, chunk not silent   -> count noise frames; declare speech
    2. no speech yet, silent, initial silence exceeded   -> stop
    3. speech heard, silent, trailing silence exceeded   -> stop
    4. absolute timeout exceeded                         -> stop
    5. silent                                            -> reset noise frames
Every outcome that does not stop forwards the chunk.

Timeouts are cooperative: they are only checked when a chunk arrives.
"""
import enum
import logging
import time
from typing import Any, Callable, List, Optional

from config import RecognizerSettings
from core.deadlines import (
    ABSOLUTE_TIMEOUT,
    INITIAL_SILENCE,
    TRAILING_SILENCE,
    DeadlinePolicy,
    absolute_timeout_exceeded,
    evaluate_policies,
    initial_silence_exceeded,
    trailing_silence_exceeded,
)
from core.errors import PreconditionViolation, ProtocolRejected, SpeechError
from core.results import Hypothesis, ResultsType, assemble_results
from core.session_config import ConfigSnapshot, SessionConfig
from core.vad import VoiceActivityDetector

logger = logging.getLogger(__name__)

# Completion reason when the host ends input before any deadline trips
END_OF_AUDIO = "end_of_audio"


class EngineState(enum.Enum):
    NOT_READY = "not_ready"
    READY = "ready"
    WAIT = "wait"
    DONE = "done"


class FeedOutcome(enum.Enum):
    CONTINUE = "continue"
    SPEECH_DETECTED = "speech_detected"
    COMPLETED = "completed"


class RecognitionSession:
    """Voice-activity-gated streaming recognition for one channel."""

    def __init__(
        self,
        client: Any,
        config: SessionConfig,
        settings: Optional[RecognizerSettings] = None,
        vad: Optional[VoiceActivityDetector] = None,
        clock: Callable[[], float] = time.monotonic,
        on_speech: Optional[Callable[["RecognitionSession"], None]] = None,
        metrics: Optional[Any] = None,
    ):
        """
        Args:
            client: RecognizerClient (or compatible) owned by this session.
            config: Mutable per-session configuration store.
            settings: Fixed constants (noise frames, N-best size, sample rate, encoding).
            vad: Voice activity detector; built from settings when omitted.
            clock: Monotonic seconds, used for the absolute timeout.
            on_speech: Called once per attempt when speech is first detected
                (the host uses it to stop prompt playback).
            metrics: Optional module with record_* functions (metrics.recognition_metrics).
        """
        self.client = client
        self.config = config
        self.settings = settings or RecognizerSettings()
        self.vad = vad or VoiceActivityDetector(
            sample_rate=self.settings.sample_rate,
            threshold=self.settings.silence_threshold,
        )
        self._clock = clock
        self._on_speech = on_speech
        self._metrics = metrics

        self.state = EngineState.NOT_READY
        self.results_type = ResultsType.NORMAL
        self.heard_speech = False
        self.noise_frames = 0
        self.quiet = False
        self.spoke = False
        self.started_at: Optional[float] = None
        self.acknowledged_at: Optional[float] = None
        self.completion_reason: Optional[str] = None
        self._active: Optional[ConfigSnapshot] = None
        self._results: List[Hypothesis] = []
        self._destroyed = False

        if self._metrics is not None:
            self._metrics.record_session_open()

    # ----- Introspection -----

    @property
    def total_silence_ms(self) -> int:
        return self.vad.total_silence_ms

    @property
    def active_config(self) -> Optional[ConfigSnapshot]:
        """Configuration captured by the last start()."""
        return self._active

    def deadline_status(self) -> List[DeadlinePolicy]:
        """Current view of the three deadline policies (empty before start())."""
        if self._active is None or self.acknowledged_at is None:
            return []
        return evaluate_policies(
            self._active.init_silence_ms,
            self._active.max_silence_ms,
            self._active.abs_timeout_s,
            self.total_silence_ms,
            self._clock() - self.acknowledged_at,
            self.heard_speech,
        )

    # ----- Lifecycle -----

    def start(self) -> None:
        """
        Reset VAD state and open a recognition stream with the current configuration.

        Raises:
            PreconditionViolation: an attempt is already in progress.
            TransportFailure: the recognizer could not be reached.
            ProtocolRejected: the recognizer did not accept the stream.
        """
        self._ensure_alive()
        if self.state is EngineState.DONE:
            self._results = []
            self.completion_reason = None
            self._set_state(EngineState.NOT_READY)
        if self.state is not EngineState.NOT_READY:
            raise PreconditionViolation(f"start() not allowed in state {self.state.name}")

        if self.client.is_streaming:
            # Left over from a failed attempt; close it server-side first
            self._stop_quietly()

        self._active = self.config.snapshot()
        self.heard_speech = False
        self.noise_frames = 0
        self.quiet = False
        self.spoke = False
        self.vad.reset()
        self.started_at = self._clock()
        self.acknowledged_at = None

        cfg = self._active
        self._notice(
            "Start recognize: lang=%s model=%s asr_engine=%s",
            cfg.lang, cfg.model_name, cfg.asr_engine,
        )
        try:
            response = self.client.start_streaming(
                self.settings.encoding,
                self.settings.sample_rate,
                cfg.lang,
                cfg.model_name,
                cfg.asr_engine,
            )
        except SpeechError as e:
            logger.error("Streaming start error: %s", e)
            self._record_failure()
            raise
        if not response.accepted:
            logger.error("Streaming not started: [%s] %s", response.status, response.message)
            self._record_failure()
            raise ProtocolRejected(response.status, response.message, operation="start")

        self.acknowledged_at = self._clock()
        self._set_state(EngineState.READY)
        self._notice("Streaming started.")

    def feed(self, chunk: bytes) -> FeedOutcome:
        """
        Process one linear-PCM chunk.

        Returns:
            SPEECH_DETECTED on the chunk that confirms speech, COMPLETED when a
            deadline stopped the stream (results are then available), else CONTINUE.

        Raises:
            PreconditionViolation: session is not READY.
            TransportFailure / ProtocolRejected: the attempt is aborted (state NOT_READY).
        """
        if self.state is not EngineState.READY:
            raise PreconditionViolation(f"feed() not allowed in state {self.state.name}")

        is_silence, total_silence = self.vad.classify(chunk)
        cfg = self._active
        outcome = FeedOutcome.CONTINUE

        if not self.heard_speech and not is_silence:
            self.noise_frames += 1
            if self.noise_frames > self.settings.noise_frames:
                self._speech_detected()
                outcome = FeedOutcome.SPEECH_DETECTED
        elif not self.heard_speech and is_silence and initial_silence_exceeded(
            cfg.init_silence_ms, total_silence, self.heard_speech
        ):
            self._notice("Maximum initial silence detected: %d ms.", total_silence)
            return self._complete(INITIAL_SILENCE)
        elif self.heard_speech and is_silence and trailing_silence_exceeded(
            cfg.max_silence_ms, total_silence, self.heard_speech
        ):
            self._notice("Maximum final silence detected: %d ms.", total_silence)
            return self._complete(TRAILING_SILENCE)
        elif absolute_timeout_exceeded(cfg.abs_timeout_s, self._clock() - self.acknowledged_at):
            self._notice("Absolute timeout reached [%s seconds].", cfg.abs_timeout_s)
            return self._complete(ABSOLUTE_TIMEOUT)
        elif is_silence:
            self.noise_frames = 0

        logger.debug(
            "heard_speech=%s silence=%s total_silence=%d noise_frames=%d",
            self.heard_speech, is_silence, total_silence, self.noise_frames,
        )

        try:
            self.client.send_audio(chunk)
        except SpeechError as e:
            self._abort("Streaming data error: %s", e)
            raise
        return outcome

    def finish(self) -> FeedOutcome:
        """
        End of input: stop the stream now and assemble results for the audio sent so far.

        Raises:
            PreconditionViolation: session is not READY.
            TransportFailure / ProtocolRejected: the attempt is aborted (state NOT_READY).
        """
        if self.state is not EngineState.READY:
            raise PreconditionViolation(f"finish() not allowed in state {self.state.name}")
        self._notice("End of audio signalled by host.")
        return self._complete(END_OF_AUDIO)

    def dtmf(self, digit: str) -> None:
        """DTMF is not supported by the recognizer; accepted and ignored."""
        logger.info("DTMF not implemented (digit %r ignored)", digit)

    def configure(self, name: str, value: Any) -> None:
        """
        Change one attribute. Takes effect on the next start().

        Raises:
            InvalidAttribute: unknown attribute or bad value; nothing is changed.
        """
        self._notice("Setting attribute '%s' to '%s'", name, value)
        try:
            self.config.apply(name, value)
        except SpeechError:
            logger.warning("Unknown or invalid attribute %s=%r", name, value)
            raise

    def load_grammar(self, name: str, path: str = "") -> None:
        """Grammars live on the recognizer; loading is a no-op."""
        logger.debug("load_grammar(%s, %s) ignored", name, path)

    def unload_grammar(self, name: str) -> None:
        logger.debug("unload_grammar(%s) ignored", name)

    def activate_grammar(self, name: str) -> None:
        """Use `name` as the recognizer model for the next attempt."""
        self._notice("Activating grammar '%s'", name)
        self.config.set_model(name)

    def deactivate_grammar(self, name: str = "") -> None:
        self._notice("Deactivating grammar '%s'", name)
        self.config.set_model("")

    def set_results_type(self, results_type: ResultsType) -> None:
        if results_type is ResultsType.NBEST:
            logger.info("Results changed to nbest (max N=%d)", self.settings.max_nbest)
        self.results_type = results_type

    def fetch_results(self) -> List[Hypothesis]:
        """Hypotheses of the completed attempt; empty before DONE."""
        if self.state is not EngineState.DONE:
            return []
        return list(self._results)

    def destroy(self) -> None:
        """Stop any open stream, then close the connection. Idempotent."""
        if self._destroyed:
            return
        self._destroyed = True
        self._notice("Closing connection to recognizer.")
        if self.state is EngineState.READY or self.client.is_streaming:
            self._stop_quietly()
        try:
            self.client.close()
        finally:
            self._set_state(EngineState.NOT_READY)
            if self._metrics is not None:
                self._metrics.record_session_close()

    def __enter__(self) -> "RecognitionSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.destroy()

    # ----- Internals -----

    def _speech_detected(self) -> None:
        self._notice("Detected speech.")
        self.heard_speech = True
        self.noise_frames = 0
        self.quiet = True
        self.spoke = True
        if self._metrics is not None:
            self._metrics.record_speech_detected()
        if self._on_speech is not None:
            self._on_speech(self)

    def _complete(self, reason: str) -> FeedOutcome:
        t0 = time.perf_counter()
        try:
            response = self.client.stop_streaming()
        except SpeechError as e:
            self._abort("Streaming stop error: %s", e)
            raise
        if not response.ok:
            error = ProtocolRejected(response.status, response.message, operation="stop")
            self._abort("Streaming stop error: %s", error)
            raise error
        stop_ms = round((time.perf_counter() - t0) * 1000, 2)

        if self.results_type is ResultsType.NBEST:
            self._notice("Nbest active (Max N=%d)", self.settings.max_nbest)
        try:
            results = assemble_results(response, self.results_type, self.settings.max_nbest)
        except (TypeError, ValueError) as e:
            self._abort("Result assembly error: %s", e)
            raise
        self._set_state(EngineState.WAIT)
        self._results = results
        self.completion_reason = reason
        self._set_state(EngineState.DONE)
        self._notice(
            "Recognition finished (%s) %.2f s after start.",
            reason, self._clock() - self.started_at,
        )
        if self._metrics is not None:
            self._metrics.record_completion(reason, stop_ms)
        return FeedOutcome.COMPLETED

    def _abort(self, fmt: str, error: Exception) -> None:
        logger.error(fmt, error)
        self._set_state(EngineState.NOT_READY)
        self._record_failure()

    def _stop_quietly(self) -> None:
        try:
            self.client.stop_streaming()
        except SpeechError as e:
            logger.warning("Streaming stop on teardown failed: %s", e)

    def _record_failure(self) -> None:
        if self._metrics is not None:
            self._metrics.record_protocol_failure()

    def _ensure_alive(self) -> None:
        if self._destroyed:
            raise PreconditionViolation("session has been destroyed")

    def _set_state(self, state: EngineState) -> None:
        if state is not self.state:
            logger.debug("Speech state %s -> %s", self.state.name, state.name)
        self.state = state

    def _notice(self, msg: str, *args: Any) -> None:
        if self.config.verbose > 0:
            logger.info(msg, *args)
        else:
            logger.debug(msg, *args)
