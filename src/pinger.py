import json
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from config.config import Config
from config.logging_config import setup_logging
from contracts.health import HealthResponse
from contracts.outcome import CallbackResponse
from core.errors import SinkError
from core.ping_service import PingService

setup_logging()
logger = logging.getLogger(__name__)


def create_app(service: PingService) -> FastAPI:
    """
    Build the HTTP surface around a ping service: the callback endpoint the
    gateway calls back on, plus health and metrics.
    """

    @asynccontextmanager
    async def lifespan(app):
        try:
            await service.start()
        except Exception:
            # release the HTTP client and sink before startup aborts
            await service.stop()
            raise
        yield
        await service.stop()

    app = FastAPI(lifespan=lifespan)
    app.state.service = service

    @app.post(service.config.CALLBACK_PATH, response_model=CallbackResponse)
    async def receive_callback(request: Request):
        content_type = request.headers.get("content-type", "")
        try:
            if content_type.startswith("application/json"):
                body = await request.body()
                try:
                    payload = json.loads(body)
                except ValueError:
                    # queue workers may label the echoed id as JSON
                    logger.debug("Callback body is not JSON; matching it as raw text")
                    payload = body
                outcome = await service.matcher.match(payload)
            else:
                # queue workers post the function output as a plain body
                outcome = await service.matcher.match_stream(request.stream())
        except SinkError as e:
            return PlainTextResponse(str(e), status_code=500)
        return CallbackResponse(status=outcome.status, duration_ms=outcome.duration_ms)

    @app.get("/healthz", response_model=HealthResponse)
    async def healthz():
        return HealthResponse(
            status="ok",
            outstanding_probes=service.registry.size,
            running=service.prober.running,
        )

    @app.get("/metrics")
    def metrics():
        return Response(
            generate_latest(service.metrics_manager.registry),
            media_type=CONTENT_TYPE_LATEST,
        )

    return app


service = PingService.from_config(Config)
app = create_app(service)
