"""
Rate limiting middleware for API endpoints
"""
import time
from collections import defaultdict, deque
from fastapi import Request, HTTPException
from typing import Deque, Dict, Tuple
import logging

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    In-memory sliding-window rate limiter

    Clients are keyed by their bearer token when present, otherwise by IP,
    so signed-in users sharing an address do not throttle each other.
    """

    def __init__(self, requests_per_minute: int = 120, requests_per_hour: int = 3000):
        self.windows: Tuple[Tuple[int, int, str], ...] = (
            (60, requests_per_minute, "minute"),
            (3600, requests_per_hour, "hour"),
        )
        # Storage: {client_id: deque[timestamp]} per window length
        self.trackers: Dict[int, Dict[str, Deque[float]]] = {
            seconds: defaultdict(deque) for seconds, _, _ in self.windows
        }

    def _get_client_id(self, request: Request) -> str:
        """Extract client identifier from request"""
        authorization = request.headers.get("authorization", "")
        if authorization.lower().startswith("bearer "):
            return f"token:{authorization[7:][-32:]}"

        client_ip = request.client.host if request.client else "unknown"
        return f"ip:{client_ip}"

    @staticmethod
    def _evict(timestamps: Deque[float], cutoff: float) -> None:
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()

    async def check_rate_limit(self, request: Request) -> None:
        """
        Check if request exceeds rate limits

        Raises:
            HTTPException: 429 if rate limit exceeded
        """
        client_id = self._get_client_id(request)
        current_time = time.time()

        for seconds, limit, label in self.windows:
            timestamps = self.trackers[seconds][client_id]
            self._evict(timestamps, current_time - seconds)

            if len(timestamps) >= limit:
                logger.warning(f"Rate limit exceeded ({label}): {client_id}")
                raise HTTPException(
                    status_code=429,
                    detail=f"Too many requests. Limit: {limit} requests per {label}",
                )

        for seconds, _, _ in self.windows:
            self.trackers[seconds][client_id].append(current_time)

        logger.debug(f"Rate limit check passed: {client_id}")
