"""
Voise ASR bridge: streaming recognition gateway.

Hosts voice-activity-gated recognition sessions for WebSocket clients:
audio in, VAD + silence/timeout policies, streaming start/audio/stop with the
remote recognizer, scored hypotheses out.
"""
import logging

import uvicorn
from fastapi import FastAPI

import config as _config
import metrics.recognition_metrics as _recognition_metrics
from core.engine import EngineRegistry, create_default_engine
from core.errors import ConfigurationMissing
from streaming.websocket_gateway import build_ws_recognize_handler

logging.basicConfig(
    level=getattr(logging, _config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
for _name in ("urllib3", "uvicorn.access"):
    logging.getLogger(_name).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

app = FastAPI(title="Voise ASR Bridge")

engines = EngineRegistry()
try:
    engines.register(create_default_engine(), default=True)
except ConfigurationMissing as e:
    logger.error("Speech engine not registered: %s", e)


@app.get("/")
def health_check():
    engine = engines.get()
    return {
        "status": "online" if engine is not None else "degraded",
        "engines": engines.names(),
        "recognizer": (
            f"{engine.settings.server_host}:{engine.settings.server_port}" if engine is not None else None
        ),
    }


app.websocket("/ws/recognize")(
    build_ws_recognize_handler(
        get_engine=engines.get,
        get_metrics=_recognition_metrics,
    )
)


@app.get("/metrics/recognition", include_in_schema=False)
def metrics_recognition():
    """JSON snapshot: sessions, speech detections, completions by reason, protocol failures, stop latency."""
    return _recognition_metrics.get_snapshot()


if __name__ == "__main__":
    uvicorn.run(app, host=_config.HOST, port=_config.PORT)
