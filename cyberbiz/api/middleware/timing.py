"""
Request Timing Middleware
Rolling latency statistics and slow-request warnings.
"""

import logging
import time
from collections import Counter, deque
from threading import Lock
from typing import Callable, Dict, List, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..config import get_settings

logger = logging.getLogger(__name__)


class LatencyTracker:
    """
    Latencies of the most recent requests plus status class counts.

    Reported by the /status endpoint.
    """

    def __init__(self, window_size: int = 1000):
        self.window_size = window_size
        self.latencies: deque = deque(maxlen=window_size)
        self.status_classes: Counter = Counter()
        self.lock = Lock()

    def record(self, latency_ms: float, status_code: Optional[int] = None) -> None:
        with self.lock:
            self.latencies.append(latency_ms)
            if status_code is not None:
                self.status_classes[f"{status_code // 100}xx"] += 1

    def reset(self) -> None:
        with self.lock:
            self.latencies.clear()
            self.status_classes.clear()

    def get_stats(self) -> Dict[str, object]:
        """
        Returns:
            count, mean, p50, p95, p99, max (milliseconds) and responses per
            status class
        """
        with self.lock:
            values = sorted(self.latencies)
            responses = dict(self.status_classes)

        if not values:
            return {"count": 0, "mean": 0.0, "p50": 0.0, "p95": 0.0, "p99": 0.0,
                    "max": 0.0, "responses": responses}

        return {
            "count": len(values),
            "mean": round(sum(values) / len(values), 2),
            "p50": round(self._percentile(values, 50), 2),
            "p95": round(self._percentile(values, 95), 2),
            "p99": round(self._percentile(values, 99), 2),
            "max": round(values[-1], 2),
            "responses": responses,
        }

    @staticmethod
    def _percentile(sorted_values: List[float], percentile: int) -> float:
        index = min(int(percentile / 100.0 * len(sorted_values)), len(sorted_values) - 1)
        return sorted_values[index]


_latency_tracker = LatencyTracker()


def get_latency_tracker() -> LatencyTracker:
    return _latency_tracker


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """
    Record each request's latency and flag requests slower than
    SLOW_REQUEST_THRESHOLD_MS.
    """

    def __init__(self, app, tracker: Optional[LatencyTracker] = None, threshold_ms: Optional[int] = None):
        super().__init__(app)
        self.tracker = tracker or get_latency_tracker()
        self.threshold_ms = threshold_ms or get_settings().slow_request_threshold_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        self.tracker.record(duration_ms, response.status_code)
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        if duration_ms > self.threshold_ms:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} took {duration_ms:.0f}ms",
                extra={"threshold_ms": self.threshold_ms},
            )

        return response
