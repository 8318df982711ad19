"""Structured JSON logging with request-id context and optional Loki shipping."""

import json
import logging
import queue
import time
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import QueueHandler, QueueListener
from typing import List, Optional, Tuple

import httpx

from backoffice.core.config import settings

LOGGER_NAME = "backoffice"
NO_REQUEST_ID = "no-req-id"

request_id_var: ContextVar[str] = ContextVar("request_id", default=NO_REQUEST_ID)

# Attributes every LogRecord has; anything else came in through ``extra``.
_RESERVED_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime", "request_id"}


def record_extras(record: logging.LogRecord) -> dict:
    return {k: v for k, v in vars(record).items() if k not in _RESERVED_ATTRS}


class RequestIdFilter(logging.Filter):
    """Copy the current request id onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line: ts, level, logger, requestId, msg, extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "requestId": getattr(record, "request_id", NO_REQUEST_ID),
            "msg": record.getMessage(),
        }
        payload.update(record_extras(record))
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class LokiHandler(logging.Handler):
    """Push log lines to a Grafana Loki instance."""

    def __init__(
        self,
        url: str,
        labels: Optional[dict] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 2.0,
    ):
        super().__init__()
        self.push_url = url.rstrip("/") + "/loki/api/v1/push"
        self.labels = labels or {}
        auth = (username, password) if username and password else None
        self.client = httpx.Client(timeout=timeout, auth=auth)

    def build_payload(self, record: logging.LogRecord) -> dict:
        stream = dict(self.labels)
        stream["level"] = record.levelname.lower()
        return {
            "streams": [
                {
                    "stream": stream,
                    "values": [[str(time.time_ns()), self.format(record)]],
                }
            ]
        }

    def emit(self, record: logging.LogRecord) -> None:
        try:
            response = self.client.post(self.push_url, json=self.build_payload(record))
            response.raise_for_status()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        self.client.close()
        super().close()


def queued(handler: logging.Handler) -> Tuple[QueueHandler, QueueListener]:
    """Front ``handler`` with a queue so slow I/O runs on a listener thread.

    Filters stay on the returned QueueHandler, where the request context is
    still set when the record is created.
    """
    log_queue: "queue.Queue[logging.LogRecord]" = queue.Queue(-1)
    listener = QueueListener(log_queue, handler, respect_handler_level=True)
    return QueueHandler(log_queue), listener


_listeners: List[QueueListener] = []


def setup_logging() -> logging.Logger:
    """Configure the application logger once."""
    logger = logging.getLogger(LOGGER_NAME)

    # Avoid duplicate handlers in dev reload
    if logger.handlers:
        return logger

    logger.setLevel(settings.LOG_LEVEL.upper())
    logger.propagate = False

    formatter = JsonFormatter()
    request_filter = RequestIdFilter()

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    stream_handler.addFilter(request_filter)
    logger.addHandler(stream_handler)

    if settings.LOKI_URL:
        loki_handler = LokiHandler(
            settings.LOKI_URL,
            labels=settings.loki_labels,
            username=settings.LOKI_USERNAME,
            password=settings.LOKI_PASSWORD,
        )
        loki_handler.setFormatter(formatter)
        queue_handler, listener = queued(loki_handler)
        queue_handler.addFilter(request_filter)
        logger.addHandler(queue_handler)
        listener.start()
        _listeners.append(listener)

    return logger


def shutdown_logging() -> None:
    """Flush queued records, stop the shipping threads and detach handlers."""
    while _listeners:
        listener = _listeners.pop()
        listener.stop()
        for handler in listener.handlers:
            handler.close()
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def get_logger(name: str) -> logging.Logger:
    """Child logger under the application namespace."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
