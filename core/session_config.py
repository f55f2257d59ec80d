"""
Per-session configuration store.

Mutable attribute bag seeded from RecognizerSettings; the host changes values
by name through apply(). A session reads a frozen snapshot() when it starts, so
later changes never touch an attempt already in flight.
"""
import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, Tuple

from config import RecognizerSettings
from core.errors import InvalidAttribute

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigSnapshot:
    lang: str
    asr_engine: str
    model_name: str
    init_silence_ms: int
    max_silence_ms: int
    abs_timeout_s: int
    verbose: int


def _as_int(name: str, value) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise InvalidAttribute(name, value, reason="expected an integer")


def _as_text(name: str, value) -> str:
    if value is None:
        raise InvalidAttribute(name, value, reason="expected a string")
    return str(value)


# attribute name -> (field, parser); short names are the ones dialplans use
_ATTRIBUTES: Dict[str, Tuple[str, Callable]] = {
    "verbose": ("verbose", _as_int),
    "language": ("lang", _as_text),
    "lang": ("lang", _as_text),
    "asr_engine": ("asr_engine", _as_text),
    "engine_id": ("asr_engine", _as_text),
    "initsil": ("init_silence_ms", _as_int),
    "init_silence_ms": ("init_silence_ms", _as_int),
    "maxsil": ("max_silence_ms", _as_int),
    "trailing_silence_ms": ("max_silence_ms", _as_int),
    "abs_timeout": ("abs_timeout_s", _as_int),
    "abs_timeout_s": ("abs_timeout_s", _as_int),
}


class SessionConfig:
    """Language, engine id, model/grammar name, the three thresholds and verbosity."""

    def __init__(self, snapshot: ConfigSnapshot):
        self._values = snapshot

    @classmethod
    def from_settings(cls, settings: RecognizerSettings) -> "SessionConfig":
        return cls(
            ConfigSnapshot(
                lang=settings.lang,
                asr_engine=settings.asr_engine,
                model_name="",
                init_silence_ms=settings.init_silence_ms,
                max_silence_ms=settings.max_silence_ms,
                abs_timeout_s=settings.abs_timeout_s,
                verbose=settings.verbose,
            )
        )

    def apply(self, name: str, value) -> None:
        """
        Set one attribute by its host-facing name.

        Raises:
            InvalidAttribute: unknown name or unparseable value; the store is unchanged.
        """
        key = (name or "").strip().lower()
        if key not in _ATTRIBUTES:
            raise InvalidAttribute(name, value)
        field_name, parse = _ATTRIBUTES[key]
        parsed = parse(key, value)
        self._values = replace(self._values, **{field_name: parsed})

    def set_model(self, model_name: str) -> None:
        self._values = replace(self._values, model_name=model_name or "")

    def snapshot(self) -> ConfigSnapshot:
        return self._values

    @property
    def lang(self) -> str:
        return self._values.lang

    @property
    def asr_engine(self) -> str:
        return self._values.asr_engine

    @property
    def model_name(self) -> str:
        return self._values.model_name

    @property
    def verbose(self) -> int:
        return self._values.verbose
