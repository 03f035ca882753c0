from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("timing")


class TimingMiddleware(BaseHTTPMiddleware):
    """Time each request and log it under the activity it carried.

    The bot route stores the activity label (``invoke:task/fetch``,
    ``message`` ...) on ``request.state.activity_label``.
    """

    def __init__(self, app, slow_ms: int = 1200):
        super().__init__(app)
        self.slow_ms = slow_ms

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Process-Time"] = f"{elapsed_ms:.2f}ms"

        label = getattr(request.state, "activity_label", None) or request.url.path
        if elapsed_ms > self.slow_ms:
            logger.warning(f"Slow {label} took {elapsed_ms:.0f}ms (threshold {self.slow_ms}ms)")
        else:
            logger.info(f"{label} {response.status_code} {elapsed_ms:.0f}ms")
        return response
