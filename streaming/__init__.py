"""
Real-time streaming layer.

- audio_frames: PCM byte/duration helpers and 20 ms re-framing.
- websocket_gateway: WebSocket handler for /ws/recognize (import separately to avoid pulling FastAPI).
"""

from streaming.audio_frames import FrameSplitter, bytes_to_duration_ms, duration_ms_to_bytes

__all__ = [
    "FrameSplitter",
    "bytes_to_duration_ms",
    "duration_ms_to_bytes",
]
