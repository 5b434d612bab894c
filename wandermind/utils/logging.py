"""Structured logging for pipeline stages."""

import logging
from typing import Any

logger = logging.getLogger(__name__)


class StructuredPipelineLogger:
    """Structured logger for generation and edit stages."""

    def log_stage(
        self,
        stage: str,
        outcome: str,
        *,
        latency_ms: float | None = None,
        error_reason: str | None = None,
        **fields: Any,
    ) -> None:
        """Log a pipeline stage with structured data."""
        log_data: dict[str, Any] = {"stage": stage, "outcome": outcome, **fields}

        if latency_ms is not None:
            log_data["latency_ms"] = round(latency_ms, 2)
        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Pipeline stage: {stage} - {outcome}"

        if outcome in ("success", "cache_hit"):
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})
