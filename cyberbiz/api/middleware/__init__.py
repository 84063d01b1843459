"""
Middleware
Request id propagation, request logging and latency tracking.
"""

from .logging import RequestLoggingMiddleware, REQUEST_ID_HEADER
from .timing import RequestTimingMiddleware, LatencyTracker, get_latency_tracker

__all__ = [
    "RequestLoggingMiddleware",
    "RequestTimingMiddleware",
    "LatencyTracker",
    "get_latency_tracker",
    "REQUEST_ID_HEADER",
]
