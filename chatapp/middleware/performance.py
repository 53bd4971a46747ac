"""Per-request timing log."""
import logging
import time

from fastapi import Request

logger = logging.getLogger("chatapp.performance")


async def performance_logger(request: Request, call_next):
    """Log method, path, auth state, status and duration of every request."""
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000

    authenticated = bool(getattr(request.state, "user_id", None))
    logger.info(
        " | ".join([
            f"MT: {request.method}",
            f"PA: {request.url.path}",
            f"AU: {'Authenticated' if authenticated else 'Unauthenticated'}",
            f"ST: {response.status_code}",
            f"RT: {duration_ms:.2f} ms",
        ])
    )
    return response
