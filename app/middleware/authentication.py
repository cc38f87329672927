# app/middleware/authentication.py
from typing import Optional, Set, Tuple, Callable, Awaitable

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.security.utils import get_authorization_scheme_param
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp
from loguru import logger
from jose import JWTError, jwt

from app.core.config import SECRET_KEY, ALGORITHM


# Reachable by anyone, whatever the method
OPEN_PATHS: Set[str] = {
    "/",
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
    "/api/v1/auth/token",
    "/api/v1/auth/register",
}

# Catalog browsing is public; changing it is not
PUBLIC_READ_PREFIXES: Tuple[str, ...] = ("/api/v1/items",)


def is_public_path(method: str, path: str) -> bool:
    if path in OPEN_PATHS or path.startswith("/docs") or path.startswith("/redoc"):
        return True
    return method == "GET" and path.startswith(PUBLIC_READ_PREFIXES)


def unauthorized(detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": detail},
        headers={"WWW-Authenticate": "Bearer"},
    )


class AuthMiddleware(BaseHTTPMiddleware):
    """Rejects protected calls without a valid bearer token and records the account id on request.state."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        path = request.url.path
        request_id = getattr(request.state, "request_id", "N/A")

        if is_public_path(request.method, path):
            return await call_next(request)

        authorization: Optional[str] = request.headers.get("Authorization")
        scheme, token = get_authorization_scheme_param(authorization or "")
        if scheme.lower() != "bearer" or not token:
            logger.warning(f"RID:{request_id} {request.method} {path} rejected: missing bearer token.")
            return unauthorized("Not authenticated")

        try:
            payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        except JWTError as e:
            logger.warning(f"RID:{request_id} {request.method} {path} rejected: {e}")
            return unauthorized(f"Invalid token: {e}")

        user_id: Optional[str] = payload.get("sub")
        if not user_id:
            logger.warning(f"RID:{request_id} {request.method} {path} rejected: token has no subject.")
            return unauthorized("Invalid token: subject missing")

        request.state.user_id = user_id
        return await call_next(request)
