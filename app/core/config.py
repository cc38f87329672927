# app/core/config.py
import os
import sys
import logging
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

project_root = Path(__file__).resolve().parent.parent.parent
dotenv_path = project_root / ".env"

# --- Load .env if present (process environment wins) ---
if dotenv_path.is_file():
    logger.info(f"Loading environment variables from: {dotenv_path}")
    load_dotenv(dotenv_path=dotenv_path)
else:
    logger.debug(f".env file not found at {dotenv_path}. Relying on system environment variables.")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}. Using default: {default}.")
        return default


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# --- Intercept Handler (stdlib logging -> Loguru) ---
class InterceptHandler(logging.Handler):
    """Routes standard library log records into Loguru."""
    def emit(self, record: logging.LogRecord) -> None:
        try: level = logger.level(record.levelname).name
        except ValueError: level = record.levelno
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1
        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging():
    """Configure Loguru sinks and intercept standard logging."""
    log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()

    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    )
    log_file_path_str = os.getenv("LOG_FILE_PATH", "logs/smart_borrow_{time:YYYY-MM-DD}.log")
    log_file_path = Path(log_file_path_str)
    log_rotation = os.getenv("LOG_ROTATION", "1 day")
    log_retention = os.getenv("LOG_RETENTION", "7 days")
    log_serialize = _bool_env("LOG_SERIALIZE", False)
    log_to_file = _bool_env("LOG_TO_FILE", True)

    logger.remove()

    # Console
    logger.add(
        sys.stderr,
        level=log_level_name,
        format=log_format,
        colorize=True,
    )

    # File
    if log_to_file:
        try:
            log_file_path.parent.mkdir(parents=True, exist_ok=True)
            logger.add(
                log_file_path,
                level=log_level_name,
                format=log_format,
                rotation=log_rotation,
                retention=log_retention,
                serialize=log_serialize,
                enqueue=True,
                backtrace=True,
                diagnose=False,
                encoding="utf-8"
            )
            logger.info(f"File logging enabled at: {log_file_path}")
        except Exception as e:
            logger.error(f"Failed to setup file logging at {log_file_path}: {e}")

    # --- Intercept standard logging ---
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in list(logging.root.manager.loggerDict):
        if name.startswith(("uvicorn", "fastapi", "starlette", "apscheduler")):
            existing_logger = logging.getLogger(name)
            existing_logger.handlers = [InterceptHandler()]
            existing_logger.propagate = False

    logger.info(f"Loguru logging setup complete. Level: {log_level_name}")


# --- JWT Configuration ---
SECRET_KEY: str = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    logger.critical("FATAL: SECRET_KEY environment variable is not set.")
    raise ValueError("SECRET_KEY environment variable is not set.")

ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES: int = _int_env("ACCESS_TOKEN_EXPIRE_MINUTES", 30)

# --- Borrowing rules ---
LOAN_PERIOD_DAYS: int = _int_env("LOAN_PERIOD_DAYS", 7)
RENEW_DAYS: int = _int_env("RENEW_DAYS", 7)
FINE_PER_DAY: int = _int_env("FINE_PER_DAY", 100)
FINE_CURRENCY: str = os.getenv("FINE_CURRENCY", "THB")

# --- Registration policy ---
# Student cards carry the two-digit intake year as their prefix (e.g. "66001").
STUDENT_CARD_CURRENT_YEAR: int = _int_env("STUDENT_CARD_CURRENT_YEAR", 68)
STUDENT_CARD_WINDOW_YEARS: int = _int_env("STUDENT_CARD_WINDOW_YEARS", 4)
REGISTRATION_CURRENT_YEAR: int = _int_env("REGISTRATION_CURRENT_YEAR", 2025)
NATIONAL_ID_MIN_AGE: int = _int_env("NATIONAL_ID_MIN_AGE", 18)
NATIONAL_ID_MAX_AGE: int = _int_env("NATIONAL_ID_MAX_AGE", 22)
REGISTRATION_ATTACHMENT_PATH: str = os.getenv("REGISTRATION_ATTACHMENT_PATH", "borrow_term_req.pdf")

# --- Email (SMTP) ---
SMTP_HOST: str = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT: int = _int_env("SMTP_PORT", 587)
SMTP_USER: str = os.getenv("SMTP_USER", "")
SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
SMTP_START_TLS: bool = _bool_env("SMTP_START_TLS", True)
EMAIL_FROM: str = os.getenv("EMAIL_FROM") or SMTP_USER or "noreply@smartborrow.local"
EMAIL_FROM_NAME: str = os.getenv("EMAIL_FROM_NAME", "Smart Borrow System")
NOTIFICATION_WORKERS: int = _int_env("NOTIFICATION_WORKERS", 2)

# --- Scheduler ---
SCHEDULER_TIMEZONE: str = os.getenv("SCHEDULER_TIMEZONE", "Asia/Bangkok")
REMINDER_LEAD_DAYS: int = _int_env("REMINDER_LEAD_DAYS", 1)
REMINDER_INTERVAL_HOURS: int = _int_env("REMINDER_INTERVAL_HOURS", 24)

# --- Bootstrap data ---
SEED_DEMO_DATA: bool = _bool_env("SEED_DEMO_DATA", True)
ADMIN_ID: str = os.getenv("ADMIN_ID", "admin")
ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "admin")
ADMIN_PASSWORD_HASH: str = os.getenv("ADMIN_PASSWORD_HASH", "")
ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL") or "admin@sys.com"

RATE_LIMIT_ENABLED: bool = _bool_env("RATE_LIMIT_ENABLED", True)

logger.info(f"JWT Algorithm: {ALGORITHM}")
logger.info(f"Loan period: {LOAN_PERIOD_DAYS} days, fine: {FINE_PER_DAY} {FINE_CURRENCY}/day")
