# app/main.py
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status as fastapi_status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from loguru import logger
from slowapi.errors import RateLimitExceeded
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import setup_logging, SCHEDULER_TIMEZONE, REMINDER_INTERVAL_HOURS
from app.core.exceptions import BorrowError
from app.core.rate_limiter import get_rate_limiter, rate_limit_exception_handler
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.authentication import AuthMiddleware
from app.db.database import InMemoryRepository, init_db
from app.api.v1.api import api_router_v1
from app.scheduler.jobs import send_due_reminders
from app.services.accounts import AccountService
from app.services.notifications import NotificationDispatcher
from app.services.workflow import BorrowWorkflow, Notifier


def create_app(
    repository: Optional[InMemoryRepository] = None,
    notifier: Optional[Notifier] = None,
    enable_scheduler: bool = True,
) -> FastAPI:
    repository = repository if repository is not None else init_db()
    notifier = notifier if notifier is not None else NotificationDispatcher()
    scheduler = AsyncIOScheduler(timezone=SCHEDULER_TIMEZONE)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Application startup...")
        if enable_scheduler:
            scheduler.add_job(
                send_due_reminders,
                trigger=IntervalTrigger(hours=REMINDER_INTERVAL_HOURS),
                args=[app.state.workflow],
                id="due_reminders_job",
                name="Send Due Date Reminders",
                replace_existing=True,
                misfire_grace_time=60 * 60,
            )
            scheduler.start()
            logger.info(f"Scheduler started with timezone: {scheduler.timezone}")
        yield
        logger.info("Application shutdown...")
        if scheduler.running: scheduler.shutdown()
        if hasattr(notifier, "shutdown"): notifier.shutdown(wait=False)

    app = FastAPI(
        title="Smart Borrow API",
        description="University equipment borrowing: requests, approvals, returns and fines.",
        version="2.2.0",
        lifespan=lifespan,
    )
    app.state.repository = repository
    app.state.notifier = notifier
    app.state.workflow = BorrowWorkflow(repository, notifier)
    app.state.accounts = AccountService(repository, notifier)

    # --- Error handling ---
    app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)

    @app.exception_handler(BorrowError)
    async def borrow_error_handler(request: Request, exc: BorrowError):
        logger.info(f"Workflow rejected {request.method} {request.url.path}: {exc.code} - {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    @app.exception_handler(ValidationError)
    async def validation_exception_handler(request: Request, exc: ValidationError):
        logger.warning(f"Validation Error: {exc.errors()}")
        return JSONResponse(
            status_code=fastapi_status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": "Validation Error", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(f"HTTP Exception: Status={exc.status_code}, Detail={exc.detail}")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.opt(exception=exc).error(f"Unhandled Exception: {exc}")
        return JSONResponse(status_code=fastapi_status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "An internal server error occurred."})

    # --- Middleware (last added runs first) ---
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(AuthMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.state.limiter = get_rate_limiter()

    app.include_router(api_router_v1)

    @app.get("/")
    async def read_root():
        return {"message": "Smart Borrow System"}

    @app.get("/health")
    async def health():
        return {"ok": True}

    return app


setup_logging()
app = create_app()
