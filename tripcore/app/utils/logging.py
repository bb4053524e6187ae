"""Structured logging for collaborator calls."""

import logging
from typing import Any

logger = logging.getLogger(__name__)


class StructuredCollaboratorLogger:
    """Structured logger for calls to the catalog, generator and persistence services."""

    def log_call(
        self,
        collaborator: str,
        operation: str,
        outcome: str,
        latency_ms: float,
        key: str | int | None = None,
        cache_hit: bool = False,
        error_reason: str | None = None,
    ) -> None:
        """Log one collaborator call with structured data."""
        log_data: dict[str, Any] = {
            "collaborator": collaborator,
            "operation": operation,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
            "cache_hit": cache_hit,
        }

        if key is not None:
            log_data["key"] = key
        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Collaborator call: {collaborator}.{operation} - {outcome}"

        if outcome in ("success", "cache_hit"):
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})
