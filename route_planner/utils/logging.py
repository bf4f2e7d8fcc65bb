"""Structured logging for POI catalog calls."""

import logging
from typing import Any

logger = logging.getLogger(__name__)


class StructuredGatewayLogger:
    """Structured logger for POI gateway attempts."""

    def log_attempt(
        self,
        operation: str,
        attempt: int,
        outcome: str,
        latency_ms: float,
        error_reason: str | None = None,
    ) -> None:
        """Log gateway call attempt with structured data."""
        log_data: dict[str, Any] = {
            "upstream": "poi_catalog",
            "operation": operation,
            "attempt": attempt,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
        }

        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"POI catalog call: {operation} - {outcome}"

        if outcome in ("success", "not_found"):
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})


def configure_logging(level: int = logging.INFO) -> None:
    """Basic process-wide logging setup for the API entrypoint."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
