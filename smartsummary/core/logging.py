"""Structured logging for Smart Summary."""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class StructuredLogger:
    """Structured JSON logger injected into each component.

    Process-wide setup is limited to configuring the ``logging`` sink in
    ``app.main``; components only ever talk to their own instance.
    """

    def __init__(self, name: str = "smartsummary"):
        self.logger = logging.getLogger(name)

    def log(self, event: str, level: str = "INFO", **fields: Any) -> None:
        """Log one event as a JSON line.

        Args:
            event: Short event name (e.g. ``fallback_started``)
            level: Log level (INFO, WARNING, ERROR)
            **fields: Extra context; ``None`` values are dropped
        """
        log_entry: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": level,
            "logger": self.logger.name,
            "event": event,
        }
        for key, value in fields.items():
            if value is not None:
                log_entry[key] = value

        log_message = json.dumps(log_entry, ensure_ascii=False, default=str)

        if level == "ERROR":
            self.logger.error(log_message)
        elif level == "WARNING":
            self.logger.warning(log_message)
        elif level == "DEBUG":
            self.logger.debug(log_message)
        else:
            self.logger.info(log_message)

    def info(self, event: str, **fields: Any) -> None:
        self.log(event, "INFO", **fields)

    def warning(self, event: str, **fields: Any) -> None:
        self.log(event, "WARNING", **fields)

    def error(self, event: str, **fields: Any) -> None:
        self.log(event, "ERROR", **fields)

    def log_request(
        self,
        request_id: Optional[str],
        provider: Optional[str],
        model: Optional[str],
        outcome: str = "success",  # "success" or "error"
        error_code: Optional[str] = None,
        upstream_status: Optional[int] = None,
        latency_ms: int = 0,
        cost_usd: Optional[float] = None,
        total_tokens: Optional[int] = None,
    ) -> None:
        """Log a stream summary as structured JSON.

        Args:
            request_id: Request Record id
            provider: Provider that produced the terminal event
            model: LLM model name
            outcome: "success" or "error"
            error_code: Error code if outcome is "error"
            upstream_status: Upstream HTTP status code
            latency_ms: Stream latency in milliseconds
            cost_usd: Cost in USD
            total_tokens: Total tokens accounted
        """
        fields: Dict[str, Any] = {
            "request_id": request_id,
            "provider": provider,
            "model": model,
            "outcome": outcome,
            "latency_ms": latency_ms,
        }
        if outcome == "error":
            fields["error_code"] = error_code
            fields["upstream_status"] = upstream_status
        else:
            fields["cost_usd"] = cost_usd
            fields["total_tokens"] = total_tokens

        self.log("stream_finished", "ERROR" if outcome == "error" else "INFO", **fields)

