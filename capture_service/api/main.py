"""FastAPI application for the capture service.

The browser session is created in the application lifespan: startup launches
Chromium (failing startup if no browser is usable) and shutdown stops the
keep-alive and closes the browser. uvicorn maps SIGINT/SIGTERM to shutdown.
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import ServiceConfig
from ..errors import CaptureBusy
from ..session.runtime import CaptureRuntime
from .routes import router
from .schemas import ErrorResponse

logger = logging.getLogger(__name__)

APP_TITLE = "Capture Service"

RuntimeFactory = Callable[[ServiceConfig], CaptureRuntime]


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(
    config: Optional[ServiceConfig] = None,
    runtime_factory: Optional[RuntimeFactory] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Service configuration; read from the environment if omitted
        runtime_factory: Builds the browser runtime; defaults to ``CaptureRuntime``

    Returns:
        Configured FastAPI application instance
    """
    config = config or ServiceConfig.from_environment()
    config.validate()
    runtime_factory = runtime_factory or CaptureRuntime

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        runtime = runtime_factory(config)
        app.state.runtime = runtime
        app.state.pipeline = await runtime.start()
        logger.info(f"Server listening on port {config.port}")
        logger.info("Endpoints: /ping, /status")
        try:
            yield
        finally:
            app.state.pipeline = None
            await runtime.stop()

    app = FastAPI(
        title=APP_TITLE,
        version=__version__,
        description="Replays a fixed tab click against the target site and reports "
                    "the captured response, session cookies and verification token.",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.pipeline = None

    @app.middleware("http")
    async def add_request_id_and_logging(request: Request, call_next):
        """Add request ID and logging middleware."""
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()
        logger.info(
            f"Request started: {request.method} {request.url.path}",
            extra={"request_id": request_id}
        )

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        duration = time.time() - start_time
        logger.info(
            f"Request completed: {request.method} {request.url.path} - {response.status_code}",
            extra={
                "request_id": request_id,
                "status_code": response.status_code,
                "duration_ms": round(duration * 1000, 2),
            }
        )
        return response

    @app.exception_handler(CaptureBusy)
    async def busy_exception_handler(request: Request, exc: CaptureBusy):
        """Reject overlapping capture requests."""
        return JSONResponse(
            status_code=429,
            content=ErrorResponse(error="busy", message=exc.message).model_dump()
        )

    app.include_router(router)
    return app


def run_server(config: Optional[ServiceConfig] = None) -> None:
    """Serve the application with uvicorn until a termination signal."""
    import uvicorn

    config = config or ServiceConfig.from_environment()
    configure_logging(config.log_level)
    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        access_log=False,
    )


if __name__ == "__main__":
    run_server()
