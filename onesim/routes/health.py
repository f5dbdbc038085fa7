"""
OneSim Backend: Health Check Route
==================================

What:  Liveness probe for load balancers and container health checks.
How:   Runs SELECT 1 against the pool and reports the number of open
       real-time connections.

Status levels:
    healthy:   database reachable (HTTP 200)
    unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from onesim import __version__
from onesim.dependencies import get_broadcaster
from onesim.schemas.common import HealthResponse
from onesim.services.broadcaster import NotificationBroadcaster

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(
    request: Request,
    broadcaster: NotificationBroadcaster = Depends(get_broadcaster),
):
    db_status = "connected"
    overall = "healthy"

    try:
        await request.app.state.database.ping()
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        connected_clients=broadcaster.connection_count,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(
        status_code=200 if overall == "healthy" else 503,
        content=body.model_dump(),
    )
