"""
SnapPDF Backend - External Client Builders
============================================

What:  Builds the long-lived clients the app talks to: Redis, S3, SQS and
       the httpx client used for Google.
How:   Called once from the lifespan in `snappdf.main`; the results are
       stored on `app.state` and handed to services by `snappdf.dependencies`.

Redis Startup Check:
    Redis is pinged at startup with a tenacity retry:
        attempts   REDIS_CONNECT_ATTEMPTS  (default 5)
        backoff    exponential with jitter, REDIS_CONNECT_MIN_WAIT → REDIS_CONNECT_MAX_WAIT
    If every attempt fails the app still starts; requests that need Redis
    answer 503 until it is back. No retry happens inside a request.
"""

import logging
from typing import Any

import boto3
import httpx
import redis.asyncio as redis
from redis.exceptions import RedisError
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from snappdf.config import Settings

logger = logging.getLogger(__name__)


def build_redis(settings: Settings) -> redis.Redis:
    # decode_responses: session values are JSON text
    return redis.from_url(settings.redis_url, decode_responses=True)


async def connect_redis(client: redis.Redis, settings: Settings) -> bool:
    """
    Ping Redis until it answers or the attempts run out.

    Returns:
        True once a PING succeeded, False if every attempt failed.
    """
    try:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type((RedisError, OSError)),
            stop=stop_after_attempt(settings.redis_connect_attempts),
            wait=wait_exponential_jitter(
                initial=settings.redis_connect_min_wait,
                max=settings.redis_connect_max_wait,
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        ):
            with attempt:
                await client.ping()
    except RetryError as e:
        logger.error(
            "Redis unreachable after %d attempt(s): %s",
            settings.redis_connect_attempts,
            str(e.last_attempt.exception()),
        )
        return False

    logger.info("Redis connected")
    return True


def _aws_client(service: str, settings: Settings) -> Any:
    kwargs = {"region_name": settings.aws_region}
    if settings.aws_endpoint_url:
        logger.info("Using %s endpoint %s", service.upper(), settings.aws_endpoint_url)
        kwargs["endpoint_url"] = settings.aws_endpoint_url
    if settings.aws_access_key_id and settings.aws_secret_access_key:
        kwargs["aws_access_key_id"] = settings.aws_access_key_id
        kwargs["aws_secret_access_key"] = settings.aws_secret_access_key
    return boto3.client(service, **kwargs)


def build_s3_client(settings: Settings) -> Any:
    return _aws_client("s3", settings)


def build_sqs_client(settings: Settings) -> Any:
    return _aws_client("sqs", settings)


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.google_timeout_seconds)
