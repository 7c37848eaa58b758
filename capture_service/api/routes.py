"""HTTP routes: liveness and capture trigger."""

import logging
import socket

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ..errors import CaptureBusy
from ..session.pipeline import CapturePipeline
from .schemas import ErrorResponse, PingResponse, StatusResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Capture"])


def get_pipeline(request: Request) -> CapturePipeline:
    """Dependency returning the process-wide capture pipeline."""
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise RuntimeError("Capture pipeline is not running")
    return pipeline


@router.get(
    "/ping",
    response_model=PingResponse,
    summary="Liveness check",
)
async def ping() -> PingResponse:
    return PingResponse(host=socket.gethostname())


@router.get(
    "/status",
    response_model=StatusResponse,
    responses={
        429: {"model": ErrorResponse, "description": "Another capture is in progress"},
        500: {"model": ErrorResponse, "description": "Capture pipeline failed"},
    },
    summary="Run one capture",
    description="Resets site state, replays the tab click and returns cookies, "
                "the verification token and a summary of the captured response",
)
async def capture_status(request: Request):
    try:
        pipeline = get_pipeline(request)
        report = await pipeline.run()
    except CaptureBusy:
        raise
    except Exception as e:
        logger.error(f"Error /status: {e}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="internal error",
                message=str(e) or e.__class__.__name__,
            ).model_dump()
        )

    return StatusResponse.from_report(report)
