import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Any, Dict

from loguru import logger

from app.config.settings import settings
from app.utils.context import get_request_id

LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"

# Stdlib loggers routed through loguru so API, worker and HTTP client lines share one format.
INTERCEPTED_LOGGERS = (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "fastapi",
    "celery",
    "celery.task",
    "celery.worker",
    "httpx",
)


def _current_request_id(record) -> None:
    # Module-level loggers are bound once at import; the live request or job id wins.
    request_id = get_request_id()
    if request_id:
        record["extra"]["request_id"] = request_id


class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.bind(request_id=get_request_id() or "app").opt(
            depth=depth, exception=record.exc_info
        ).log(level, record.getMessage())


class CustomizeLogger:
    """Configures loguru sinks from one profile of logging_config.json."""

    @classmethod
    def make_logger(cls, config_path: Path, profile: str = "logger"):
        with open(config_path) as config_file:
            profiles: Dict[str, Dict[str, Any]] = json.load(config_file)
        config = profiles.get(profile, profiles["logger"])
        level = (settings.LOG_LEVEL or config["level"]).upper()

        logger.remove()
        logger.configure(extra={"request_id": "app"}, patcher=_current_request_id)

        logger.add(
            sys.stdout,
            enqueue=True,
            backtrace=True,
            level=level,
            format=config["console_format"],
            colorize=not config.get("use_json_logs", False),
        )

        log_file = Path(config["log_dir"]) / f"{date.today():%Y-%m-%d}-{config['filename']}"
        file_sink = dict(
            rotation=config["rotation"],
            retention=config["retention"],
            enqueue=True,
            backtrace=True,
            level=level,
            colorize=False,
        )
        if config.get("use_json_logs", False):
            logger.add(str(log_file), serialize=True, **file_sink)
        else:
            logger.add(str(log_file), format=config["file_format"], **file_sink)

        cls.intercept_standard_logging()
        return logger

    @staticmethod
    def intercept_standard_logging():
        logging.basicConfig(handlers=[InterceptHandler()], level=0)
        for name in INTERCEPTED_LOGGERS:
            std_logger = logging.getLogger(name)
            std_logger.handlers = [InterceptHandler()]
            std_logger.propagate = False


custom_logger = CustomizeLogger.make_logger(
    LOGGING_CONFIG_PATH,
    "production" if settings.ENVIRONMENT == "production" else "logger",
)


def get_logger():
    """Logger bound to the current request id, or "app" outside a request or job."""
    return custom_logger.bind(request_id=get_request_id() or "app")
