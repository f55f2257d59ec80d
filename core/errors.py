"""
Error kinds raised by the recognition bridge.

All failures are surfaced to the caller; nothing here is retried.
"""
from typing import Any, Optional


class SpeechError(Exception):
    """Base class for recognition bridge errors."""


class ConfigurationMissing(SpeechError):
    """No configuration source could be loaded (fatal at engine/session creation)."""


class ConnectionFailed(SpeechError):
    """The recognizer could not be reached when opening a session."""


class ProtocolRejected(SpeechError):
    """The recognizer answered with a status that does not mean success."""

    def __init__(self, status: int, message: str = "", operation: str = ""):
        self.status = status
        self.message = message
        self.operation = operation
        label = f"{operation} " if operation else ""
        super().__init__(f"Recognizer rejected {label}request: [{status}] {message}".strip())


class TransportFailure(SpeechError):
    """Network failure while talking to the recognizer mid-attempt."""


class InvalidAttribute(SpeechError):
    """Unknown configuration attribute, or a value that cannot be parsed."""

    def __init__(self, name: str, value: Optional[Any] = None, reason: str = "unknown attribute"):
        self.name = name
        self.value = value
        self.reason = reason
        super().__init__(f"{reason}: {name}={value!r}")


class PreconditionViolation(SpeechError):
    """Operation called in a state that does not allow it."""
