# app/middleware/logging.py
import time
import uuid
from typing import Callable, Awaitable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from loguru import logger

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every call with a request id and, once authenticated, the account id."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        start_time = time.perf_counter()
        request.state.request_id = request_id
        client = f"{request.client.host}:{request.client.port}" if request.client else "unknown"

        logger.info(f"RID:{request_id} START {request.method} {request.url.path} Client:{client}")

        try:
            response = await call_next(request)
        except Exception as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"RID:{request_id} FAILED {request.method} {request.url.path} "
                f"Error:{e} Duration:{elapsed_ms:.2f}ms"
            )
            raise

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        # set by AuthMiddleware on protected routes
        account = getattr(request.state, "user_id", None) or "-"
        logger.info(
            f"RID:{request_id} END {request.method} {request.url.path} Account:{account} "
            f"Status:{response.status_code} Duration:{elapsed_ms:.2f}ms"
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
