"""
Rate Limiting Middleware
Implements rate limiting for write endpoints
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Dict, Tuple, Optional
import threading
import logging

from battery_ledger.core.config import settings
from battery_ledger.core.messages import get_message, parse_language

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class RateLimiter:
    """
    Thread-safe in-memory rate limiter using sliding window algorithm.
    Counters live in process memory, so each worker limits independently.
    """

    def __init__(self, limits: Optional[Dict[str, Tuple[int, int]]] = None):
        self._requests: Dict[str, list] = defaultdict(list)
        self._lock = threading.Lock()

        # (max requests, window seconds) per path prefix
        self.limits = limits or {
            # Full recalculation touches every row
            '/api/v1/ledger/recalculate': (2, 60),

            # Reconciling writes
            '/api/v1/purchases': (30, 60),
            '/api/v1/sales': (30, 60),
            '/api/v1/vouchers': (30, 60),

            # Quick entry is typed row by row
            '/api/v1/daily-purchases': (120, 60),

            # Default limit for all other endpoints
            'default': (100, 60),
        }

    def _get_client_ip(self, request: Request) -> str:
        """Get client IP address from request"""
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host

        return "unknown"

    def _get_limit(self, path: str) -> Tuple[int, int]:
        for pattern, limit in self.limits.items():
            if pattern != 'default' and path.startswith(pattern):
                return limit
        return self.limits['default']

    def _cleanup_old_requests(self, key: str, window_seconds: int):
        """Remove requests outside the time window"""
        cutoff = _now() - timedelta(seconds=window_seconds)
        self._requests[key] = [
            timestamp for timestamp in self._requests[key]
            if timestamp > cutoff
        ]

    def is_allowed(self, request: Request) -> Tuple[bool, Optional[Dict]]:
        """
        Check if the request is allowed under rate limiting rules.

        Returns:
            Tuple of (is_allowed, rate_limit_info)
        """
        path = request.url.path

        # Only rate limit write operations
        if request.method in ['GET', 'HEAD', 'OPTIONS']:
            return True, None

        limit, window = self._get_limit(path)
        key = f"{path}:{self._get_client_ip(request)}"

        with self._lock:
            self._cleanup_old_requests(key, window)

            current_count = len(self._requests[key])

            if current_count >= limit:
                oldest_request = min(self._requests[key]) if self._requests[key] else _now()
                retry_after = int((oldest_request + timedelta(seconds=window) - _now()).total_seconds())

                logger.warning(f"Rate limit exceeded for {key}: {current_count}/{limit} requests")

                return False, {
                    'limit': limit,
                    'remaining': 0,
                    'reset': retry_after,
                    'retry_after': max(1, retry_after)
                }

            self._requests[key].append(_now())

            return True, {
                'limit': limit,
                'remaining': limit - current_count - 1,
                'reset': window
            }


class RateLimitMiddleware(BaseHTTPMiddleware):
    """FastAPI middleware for rate limiting"""

    def __init__(self, app, limits: Optional[Dict[str, Tuple[int, int]]] = None):
        super().__init__(app)
        self.rate_limiter = RateLimiter(limits)

    async def dispatch(self, request: Request, call_next):
        if not settings.RATE_LIMIT_ENABLED or not request.url.path.startswith('/api/'):
            return await call_next(request)

        is_allowed, rate_info = self.rate_limiter.is_allowed(request)

        if not is_allowed:
            lang = parse_language(request.headers.get("Accept-Language"))
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    'detail': get_message("too_many_requests", lang),
                    'retry_after': rate_info.get('retry_after', 60)
                },
                headers={
                    'Retry-After': str(rate_info.get('retry_after', 60)),
                    'X-RateLimit-Limit': str(rate_info.get('limit', 0)),
                    'X-RateLimit-Remaining': '0',
                    'X-RateLimit-Reset': str(rate_info.get('reset', 60))
                }
            )

        response = await call_next(request)

        if rate_info:
            response.headers['X-RateLimit-Limit'] = str(rate_info['limit'])
            response.headers['X-RateLimit-Remaining'] = str(rate_info['remaining'])
            response.headers['X-RateLimit-Reset'] = str(rate_info['reset'])

        return response
