# lineserver/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lineserver.api import messages, users
from lineserver.core.admission import client_key
from lineserver.core.config import RelaySettings
from lineserver.core.errors import RelayError, TooManyRequests
from lineserver.services.relay_service import RelayService
from lineserver.services.sweeper import RetentionSweeper
from lineserver.utils.logger import setup_logger

logger = logging.getLogger(__name__)


def create_app(settings: Optional[RelaySettings] = None, relay: Optional[RelayService] = None) -> FastAPI:
    setup_logger()
    settings = settings or RelaySettings.from_env()
    relay = relay or RelayService(settings)
    sweeper = RetentionSweeper(relay, settings.sweep_interval_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper.start()
        try:
            yield
        finally:
            sweeper.stop()

    app = FastAPI(
        title="The Line Relay",
        version="1.0.0",
        description="Ephemeral anonymous relay for encrypted messages and files",
        lifespan=lifespan,
    )
    app.state.relay = relay
    app.state.sweeper = sweeper

    @app.middleware("http")
    async def admission_control(request: Request, call_next):
        try:
            relay.admission.admit(client_key(request))
        except TooManyRequests as e:
            return JSONResponse(
                status_code=e.status_code,
                content={"error": e.message},
                headers={"Retry-After": str(e.retry_after)},
            )
        return await call_next(request)

    # CORS wraps admission so rejections still carry CORS headers
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=".*",
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.debug("Rejected request body: %s", exc.errors())
        return JSONResponse(status_code=400, content={"error": "Invalid input"})

    # Register routers
    app.include_router(users.router, tags=["Users"])
    app.include_router(messages.router, tags=["Messages"])

    @app.get("/health")
    def health_check():
        return {"status": "ok", "timestamp": relay.clock()}

    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings = app.state.relay.settings
    logger.info("The Line relay listening on %s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
