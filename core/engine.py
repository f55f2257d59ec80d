"""
Speech engine factory and registry.

A SpeechEngine is immutable: settings plus a client constructor. Every call to
create_session() returns an independent RecognitionSession with its own
connection, so sessions never share mutable state.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from config import RecognizerSettings, load_settings
from core.session import RecognitionSession
from core.session_config import SessionConfig
from recognizer.client import RecognizerClient

logger = logging.getLogger(__name__)

DEFAULT_ENGINE_NAME = "voise"

ClientFactory = Callable[[RecognizerSettings], Any]


def _default_client_factory(settings: RecognizerSettings) -> RecognizerClient:
    return RecognizerClient(
        settings.server_host,
        settings.server_port,
        timeout_s=settings.request_timeout_s,
    )


class SpeechEngine:
    def __init__(
        self,
        name: str,
        settings: RecognizerSettings,
        client_factory: Optional[ClientFactory] = None,
    ):
        self.name = name
        self.settings = settings
        self._client_factory = client_factory or _default_client_factory

    def create_session(
        self,
        on_speech: Optional[Callable[[RecognitionSession], None]] = None,
        metrics: Optional[Any] = None,
    ) -> RecognitionSession:
        """
        Open a connection to the recognizer and return a NOT_READY session.

        Raises:
            ConnectionFailed: the recognizer is unreachable (no retry).
        """
        client = self._client_factory(self.settings)
        try:
            client.connect()
        except Exception:
            logger.error(
                "Could not connect to recognizer (%s:%s).",
                self.settings.server_host, self.settings.server_port,
            )
            client.close()
            raise
        config = SessionConfig.from_settings(self.settings)
        return RecognitionSession(
            client,
            config,
            settings=self.settings,
            on_speech=on_speech,
            metrics=metrics,
        )

    def __repr__(self) -> str:
        return f"SpeechEngine(name={self.name!r}, server={self.settings.server_host}:{self.settings.server_port})"


class EngineRegistry:
    """Name -> SpeechEngine. The first registered engine is the default."""

    def __init__(self):
        self._engines: Dict[str, SpeechEngine] = {}
        self._default: Optional[str] = None

    def register(self, engine: SpeechEngine, default: bool = False) -> None:
        if engine.name in self._engines:
            raise ValueError(f"Speech engine already registered: {engine.name}")
        self._engines[engine.name] = engine
        if default or self._default is None:
            self._default = engine.name
        logger.info("Registered speech engine %s", engine.name)

    def unregister(self, name: str) -> bool:
        if self._engines.pop(name, None) is None:
            return False
        if self._default == name:
            self._default = next(iter(self._engines), None)
        logger.info("Unregistered speech engine %s", name)
        return True

    def get(self, name: Optional[str] = None) -> Optional[SpeechEngine]:
        """Engine by name; None selects the default engine."""
        key = name or self._default
        if key is None:
            return None
        return self._engines.get(key)

    def names(self) -> List[str]:
        return list(self._engines)


def create_default_engine(
    config_file: Optional[str] = None,
    client_factory: Optional[ClientFactory] = None,
) -> SpeechEngine:
    """
    Load settings and build the default engine.

    Raises:
        ConfigurationMissing: no usable configuration source.
    """
    settings = load_settings(config_file)
    return SpeechEngine(DEFAULT_ENGINE_NAME, settings, client_factory=client_factory)
