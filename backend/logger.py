"""Structured logging configuration for the Red AI conversation pipeline."""
import json
import logging
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator

stage_logger = logging.getLogger("pipeline.stages")


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add extra fields if present
        if hasattr(record, "extra"):
            log_data.update(record.extra)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = "INFO") -> None:
    """Set up structured JSON logging, replacing any existing root handlers."""
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
    root_logger.setLevel(getattr(logging, log_level))
    root_logger.addHandler(handler)


@contextmanager
def log_stage(flow: str, stage: str, **fields: Any) -> Iterator[None]:
    """
    Emit start/success/failure records around one pipeline stage.

    Exceptions are logged and re-raised unchanged.

    Args:
        flow: Flow name (ingest, complete, synthesize)
        stage: Stage name within the flow
        **fields: Additional structured fields (user_id, key, ...)
    """
    context = {"flow": flow, "stage": stage, **fields}
    stage_logger.info(
        f"{flow}.{stage} started",
        extra={"extra": {**context, "event": "start"}}
    )
    start_time = time.time()

    try:
        yield
    except Exception as e:
        latency_ms = int((time.time() - start_time) * 1000)
        stage_logger.error(
            f"{flow}.{stage} failed after {latency_ms}ms: {e}",
            extra={"extra": {
                **context,
                "event": "failure",
                "error_code": getattr(e, "code", type(e).__name__),
                "latency_ms": latency_ms,
            }}
        )
        raise

    latency_ms = int((time.time() - start_time) * 1000)
    stage_logger.info(
        f"{flow}.{stage} succeeded in {latency_ms}ms",
        extra={"extra": {**context, "event": "success", "latency_ms": latency_ms}}
    )
