"""
SnapPDF Backend - Health Check Route
======================================

What:  GET /health for Docker health checks and load balancer probes.
How:   Runs `SELECT 1` on PostgreSQL and `PING` on Redis.

Status levels:
    healthy    both stores reachable       (HTTP 200)
    unhealthy  either store unreachable    (HTTP 503)

    Both stores are critical: login needs Redis and Postgres, uploads need
    both as well. S3, SQS and Google are not probed.
"""

import logging
import time

from fastapi import APIRouter, Request, Response
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from snappdf import __version__
from snappdf.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    db_status = "connected"
    redis_status = "connected"

    # ── Database ──────────────────────────────────────────────────────────
    engine = getattr(request.app.state, "engine", None)
    try:
        if engine is None:
            raise RuntimeError("engine not initialized")
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError, RuntimeError) as e:
        db_status = "disconnected"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Redis ─────────────────────────────────────────────────────────────
    redis_client = getattr(request.app.state, "redis", None)
    try:
        if redis_client is None:
            raise RuntimeError("redis not initialized")
        await redis_client.ping()
    except (RedisError, OSError, RuntimeError) as e:
        redis_status = "disconnected"
        logger.warning("Health check: redis unreachable: %s", str(e))

    overall = "healthy" if db_status == redis_status == "connected" else "unhealthy"
    if overall != "healthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        redis=redis_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
