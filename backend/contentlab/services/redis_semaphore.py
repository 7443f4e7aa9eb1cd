"""
Redis-based distributed semaphore.

Used to serialize pipeline runs of the same project across API processes
and Celery workers (limit=1 per project).

Layout: sorted set `sem:{name}`, members are random tokens, scores are
expiry timestamps. Expired tokens are dropped on every acquire attempt so
a crashed holder cannot block the slot past its TTL.
"""
from __future__ import annotations

import asyncio
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis

from contentlab.settings import get_settings

logger = logging.getLogger(__name__)

_redis_client: aioredis.Redis | None = None


def _get_redis() -> aioredis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = aioredis.from_url(get_settings().redis_url, decode_responses=True)
    return _redis_client


def _sem_key(name: str) -> str:
    return f"sem:{name}"


async def acquire(
    name: str,
    limit: int,
    *,
    ttl_sec: int | None = None,
    wait_timeout_sec: int | None = None,
) -> str:
    """Wait for a free slot and return the token that holds it.

    Raises TimeoutError when no slot frees up within ``wait_timeout_sec``.
    """
    settings = get_settings()
    ttl_sec = ttl_sec if ttl_sec is not None else settings.redis_semaphore_ttl_sec
    wait_timeout_sec = wait_timeout_sec if wait_timeout_sec is not None else settings.project_lock_wait_timeout_sec

    r = _get_redis()
    key = _sem_key(name)
    token = uuid.uuid4().hex
    deadline = time.monotonic() + wait_timeout_sec
    backoff = 0.5

    while True:
        now_ts = time.time()
        await r.zremrangebyscore(key, "-inf", now_ts)
        current = await r.zcard(key)

        if current < limit and await r.zadd(key, {token: now_ts + ttl_sec}, nx=True):
            # another holder may have slipped in between zcard and zadd
            if await r.zcard(key) <= limit:
                logger.info(f"[semaphore] Acquired '{name}' (token={token[:8]}, limit={limit})")
                return token
            await r.zrem(key, token)

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise TimeoutError(f"Semaphore '{name}': no free slot after {wait_timeout_sec}s (limit={limit})")
        await asyncio.sleep(min(backoff, remaining))
        backoff = min(backoff * 1.5, 5.0)


async def release(name: str, token: str) -> None:
    removed = await _get_redis().zrem(_sem_key(name), token)
    if removed:
        logger.info(f"[semaphore] Released '{name}' (token={token[:8]})")
    else:
        logger.warning(f"[semaphore] Release '{name}': token {token[:8]} already expired or released")


@asynccontextmanager
async def hold(name: str, limit: int, **kwargs) -> AsyncIterator[str]:
    token = await acquire(name, limit, **kwargs)
    try:
        yield token
    finally:
        await release(name, token)


def project_run_lock(project_id: int):
    """One pipeline run per project at a time."""
    return hold(f"project-run:{project_id}", 1)
