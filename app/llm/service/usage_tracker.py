# app/llm/service/usage_tracker.py
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, Optional

from app.core.logger import get_logger

logger = get_logger("UsageTracker")

HISTORY_SIZE = 100


class UsageTracker:
    """
    Process-wide usage counters for provider calls.
    Nothing here is persisted; a restart starts from zero.
    """

    def __init__(self, history_size: int = HISTORY_SIZE):
        self._lock = threading.Lock()
        self.total_requests = 0
        self.model_usage: Dict[str, int] = {}
        self.provider_usage: Dict[str, int] = {}
        self.errors: Dict[str, int] = {}
        self.request_history: Deque[Dict[str, Any]] = deque(maxlen=history_size)

    def record(
        self,
        provider: str,
        model: str,
        status: str,
        elapsed_ms: int,
        error: Optional[str] = None,
    ) -> None:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "provider": provider,
            "model": model,
            "status": status,
            "responseTime": elapsed_ms,
            "error": error,
        }

        with self._lock:
            self.total_requests += 1
            self.model_usage[model] = self.model_usage.get(model, 0) + 1
            self.provider_usage[provider] = self.provider_usage.get(provider, 0) + 1
            if error:
                self.errors[model] = self.errors.get(model, 0) + 1
            # newest first; deque drops the oldest from the right once full
            self.request_history.appendleft(entry)
            total = self.total_requests
            model_count = self.model_usage[model]

        logger.info(
            f"{provider.upper()} - {model} | status={status} | response_time={elapsed_ms}ms "
            f"| total_requests={total} | model_usage={model_count}"
        )
        if error:
            logger.warning(f"{provider.upper()} - {model} error: {error}")

    def snapshot(self) -> Dict[str, Any]:
        """Copy of the counters, safe to serialize."""
        with self._lock:
            return {
                "totalRequests": self.total_requests,
                "modelUsage": dict(self.model_usage),
                "providerUsage": dict(self.provider_usage),
                "errors": dict(self.errors),
                "requestHistory": list(self.request_history),
            }

    def __repr__(self):
        return f"<UsageTracker total_requests={self.total_requests}>"
