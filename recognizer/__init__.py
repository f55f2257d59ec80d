"""
Client side of the streaming recognition protocol.

- responses: RecognizerResponse and status codes.
- client: RecognizerClient (start / audio / stop over HTTP).
"""

from recognizer.client import RecognizerClient
from recognizer.responses import STATUS_ACCEPTED, RecognizerResponse

__all__ = [
    "RecognizerClient",
    "RecognizerResponse",
    "STATUS_ACCEPTED",
]
