"""
Production configuration via environment variables.
Load with python-dotenv; per-session values can be overridden through
RecognitionSession.configure().
"""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from core.errors import ConfigurationMissing

# Load .env if present (optional in production where env is set by orchestrator)
load_dotenv()

# ----- Gateway server -----
PORT = int(os.environ.get("PORT", "8002"))
HOST = os.environ.get("HOST", "0.0.0.0")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# ----- Recognizer protocol -----
DEFAULT_SERVER_HOST = "127.0.0.1"
DEFAULT_SERVER_PORT = 8100
ENCODING = "LINEAR16"

# ----- Fixed detector constants -----
# Mean absolute amplitude below which a chunk counts as silence
SILENCE_THRESHOLD = 2000
# Extra consecutive non-silent chunks required before speech is declared
NOISE_FRAMES = 1
MAX_NBEST = 1

# ----- Session defaults (overridable per session) -----
DEFAULT_LANG = "pt-BR"
DEFAULT_ASR_ENGINE = "me"
DEFAULT_INIT_SILENCE_MS = 5000
DEFAULT_MAX_SILENCE_MS = 1000
DEFAULT_ABS_TIMEOUT_S = 15
DEFAULT_VERBOSE = 0
DEFAULT_SAMPLE_RATE = 8000
DEFAULT_REQUEST_TIMEOUT_S = 10.0


@dataclass(frozen=True)
class RecognizerSettings:
    """Snapshot of the configuration surface consumed when a session is created."""

    server_host: str = DEFAULT_SERVER_HOST
    server_port: int = DEFAULT_SERVER_PORT
    lang: str = DEFAULT_LANG
    asr_engine: str = DEFAULT_ASR_ENGINE
    init_silence_ms: int = DEFAULT_INIT_SILENCE_MS
    max_silence_ms: int = DEFAULT_MAX_SILENCE_MS
    abs_timeout_s: int = DEFAULT_ABS_TIMEOUT_S
    verbose: int = DEFAULT_VERBOSE
    silence_threshold: int = SILENCE_THRESHOLD
    noise_frames: int = NOISE_FRAMES
    max_nbest: int = MAX_NBEST
    sample_rate: int = DEFAULT_SAMPLE_RATE
    encoding: str = ENCODING
    request_timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigurationMissing(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        raise ConfigurationMissing(f"{name} must be a number, got {raw!r}")


def load_settings(config_file: Optional[str] = None) -> RecognizerSettings:
    """
    Build RecognizerSettings from the environment.

    Args:
        config_file: Optional dotenv file to load first. Falls back to
            VOISE_CONFIG_FILE. When a file is named but missing, there is no
            usable configuration source.

    Raises:
        ConfigurationMissing: named config file does not exist, or a numeric
            variable cannot be parsed.
    """
    path = config_file or os.environ.get("VOISE_CONFIG_FILE", "")
    if path:
        if not os.path.isfile(path):
            raise ConfigurationMissing(f"Error opening configuration file {path}")
        load_dotenv(path, override=True)

    return RecognizerSettings(
        server_host=os.environ.get("VOISE_SERVER_HOST", DEFAULT_SERVER_HOST),
        server_port=_env_int("VOISE_SERVER_PORT", DEFAULT_SERVER_PORT),
        lang=os.environ.get("VOISE_LANG", DEFAULT_LANG),
        asr_engine=os.environ.get("VOISE_ASR_ENGINE", DEFAULT_ASR_ENGINE),
        init_silence_ms=_env_int("VOISE_INIT_SILENCE_MS", DEFAULT_INIT_SILENCE_MS),
        max_silence_ms=_env_int("VOISE_MAX_SILENCE_MS", DEFAULT_MAX_SILENCE_MS),
        abs_timeout_s=_env_int("VOISE_ABS_TIMEOUT_S", DEFAULT_ABS_TIMEOUT_S),
        verbose=_env_int("VOISE_VERBOSE", DEFAULT_VERBOSE),
        silence_threshold=_env_int("VOISE_SILENCE_THRESHOLD", SILENCE_THRESHOLD),
        noise_frames=_env_int("VOISE_NOISE_FRAMES", NOISE_FRAMES),
        max_nbest=_env_int("VOISE_MAX_NBEST", MAX_NBEST),
        sample_rate=_env_int("VOISE_SAMPLE_RATE", DEFAULT_SAMPLE_RATE),
        encoding=os.environ.get("VOISE_ENCODING", ENCODING),
        request_timeout_s=_env_float("VOISE_REQUEST_TIMEOUT_S", DEFAULT_REQUEST_TIMEOUT_S),
    )
