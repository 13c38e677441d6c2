import logging
from collections import deque
from time import monotonic
from typing import Deque, Dict, Optional

from redis import asyncio as aioredis

logger = logging.getLogger("rate_limit")

_client: Optional[aioredis.Redis] = None
_client_url: Optional[str] = None
_fallback_buckets: Dict[str, Deque[float]] = {}
_last_sweep: Dict[str, float] = {}


class RateLimitExceeded(Exception):
    pass


async def _get_client(url: str) -> aioredis.Redis:
    global _client, _client_url
    if _client is not None and _client_url != url:
        await close()
    if _client is None:
        _client = aioredis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=0.5,
            socket_timeout=0.5,
        )
        _client_url = url
    return _client


def _sweep(bucket: str, cutoff: float) -> None:
    """Drop in-process keys of ``bucket`` with no hit newer than ``cutoff``."""
    prefix = f"rl:{bucket}:"
    stale = [
        key
        for key, timestamps in _fallback_buckets.items()
        if key.startswith(prefix) and (not timestamps or timestamps[-1] < cutoff)
    ]
    for key in stale:
        del _fallback_buckets[key]


async def enforce(
    bucket: str,
    identifier: str,
    limit: int,
    window_seconds: int,
    redis_url: Optional[str] = None,
) -> None:
    """
    Fixed-window rate limit using Redis INCR/EXPIRE.
    Uses in-process buckets when no Redis URL is configured or Redis is unavailable.
    """
    key = f"rl:{bucket}:{identifier}"
    if redis_url:
        try:
            client = await _get_client(redis_url)
            count = await client.incr(key)
            if count == 1:
                await client.expire(key, window_seconds)
            if count > limit:
                raise RateLimitExceeded
            return
        except RateLimitExceeded:
            raise
        except Exception as exc:
            logger.warning("Rate limit Redis fallback engaged: %s", exc.__class__.__name__)

    now = monotonic()
    cutoff = now - window_seconds
    # Keys for clients that never come back are collected once per window.
    if now - _last_sweep.get(bucket, float("-inf")) >= window_seconds:
        _sweep(bucket, cutoff)
        _last_sweep[bucket] = now

    timestamps = _fallback_buckets.setdefault(key, deque())
    while timestamps and timestamps[0] < cutoff:
        timestamps.popleft()
    if len(timestamps) >= limit:
        raise RateLimitExceeded
    timestamps.append(now)


def reset() -> None:
    _fallback_buckets.clear()
    _last_sweep.clear()


async def close() -> None:
    global _client, _client_url
    if _client is not None:
        await _client.aclose()
        _client = None
        _client_url = None
