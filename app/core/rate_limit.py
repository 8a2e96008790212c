"""
Simple in-memory sliding-window rate limiter.
"""
import logging
import time
from collections import defaultdict
from typing import Dict, List
from fastapi import Request, HTTPException, status

logger = logging.getLogger(__name__)

# {bucket:ip: [timestamps]}
rate_limit_store: Dict[str, List[float]] = defaultdict(list)


def get_client_ip(request: Request) -> str:
    """Client IP, honouring the first hop of X-Forwarded-For."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


def check_rate_limit(request: Request, bucket: str, max_requests: int = 10, window_seconds: int = 60) -> None:
    """
    Record a request for ``bucket`` and raise 429 once the window is full.

    Buckets keep login attempts from eating into the payment allowance and vice versa.
    """
    key = f"{bucket}:{get_client_ip(request)}"
    now = time.time()
    cutoff = now - window_seconds
    rate_limit_store[key] = [ts for ts in rate_limit_store[key] if ts > cutoff]

    if len(rate_limit_store[key]) >= max_requests:
        logger.warning(f"Rate limit exceeded: key={key}, window={window_seconds}s")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Rate limit exceeded. Maximum {max_requests} requests per {window_seconds} seconds."
        )

    rate_limit_store[key].append(now)


def rate_limiter(bucket: str, max_requests: int = 10, window_seconds: int = 60):
    """Route dependency wrapping check_rate_limit."""
    def dependency(request: Request) -> None:
        check_rate_limit(request, bucket, max_requests, window_seconds)
    return dependency
