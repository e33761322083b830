"""Structured logging for scrape jobs.

Console output is plain text for development; ``logs/app.log`` and
``logs/error.log`` hold one JSON object per line. Records logged through
``get_logger(..., job_id=..., platform=...)`` carry the job context, and both
formats show it.
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from pythonjsonlogger import jsonlogger

from listing_scraper.config import settings

# Context every record is guaranteed to carry once JobContextFilter has run
JOB_CONTEXT_FIELDS = ("job_id", "platform")

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(job_id)s %(platform)s] %(message)s"


class JobContextFilter(logging.Filter):
    """Fill missing job context with "-" so formats can always reference it."""

    def filter(self, record: logging.LogRecord) -> bool:
        for name in JOB_CONTEXT_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, "-")
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON lines with timestamp, level, source and the scrape job context."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.fromtimestamp(record.created, timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["source"] = f"{record.filename}:{record.lineno}"

        for name in JOB_CONTEXT_FIELDS:
            value = getattr(record, name, None)
            log_record[name] = None if value in (None, "-") else value


def _file_handler(path: Path, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(JobContextFilter())
    return handler


def setup_logging(base_dir: str | Path | None = None) -> logging.Logger:
    """Install console and JSON file handlers on the root logger.

    Args:
        base_dir: Directory to create ``logs/`` in; defaults to the working directory
    """
    logs_dir = (Path(base_dir) if base_dir else Path.cwd()) / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    console_handler.addFilter(JobContextFilter())
    root_logger.addHandler(console_handler)

    json_formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
    root_logger.addHandler(_file_handler(logs_dir / "app.log", logging.DEBUG, json_formatter))
    root_logger.addHandler(_file_handler(logs_dir / "error.log", logging.ERROR, json_formatter))

    return root_logger


class LoggerAdapter(logging.LoggerAdapter):
    """Adds a job's context to every record; per-call ``extra`` wins on conflicts."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(name: str, **context) -> LoggerAdapter:
    """
    Get a logger bound to a scrape job.

    Args:
        name: Logger name (usually __name__)
        **context: Job context, normally ``job_id`` and ``platform``

    Returns:
        LoggerAdapter with context
    """
    return LoggerAdapter(logging.getLogger(name), context)
