"""Structured logging: one JSON object per line."""

from __future__ import annotations

import json
import sys
import time
import uuid
from typing import Any, Optional, TextIO


class StructuredLogger:
    """Emits pipeline events as JSON lines tagged with a trace id."""

    def __init__(self, trace_id: Optional[str] = None, output: Optional[TextIO] = None):
        self.trace_id = trace_id or str(uuid.uuid4())[:8]
        self._output = output or sys.stderr
        self._timers: dict[str, float] = {}

    def _emit(self, data: dict[str, Any]) -> None:
        data["trace_id"] = self.trace_id
        data["timestamp"] = time.time()
        try:
            line = json.dumps(data, ensure_ascii=False, default=str)
            self._output.write(line + "\n")
            self._output.flush()
        except (OSError, ValueError) as exc:
            # closed or broken stream: report once on stderr and move on
            fallback = {
                "event": "logger_internal_error",
                "trace_id": self.trace_id,
                "error": str(exc),
            }
            sys.stderr.write(json.dumps(fallback) + "\n")

    def stage_start(self, stage: str, **extra: Any) -> None:
        self._timers[stage] = time.time()
        self._emit({"event": "stage_start", "stage": stage, **extra})

    def stage_end(self, stage: str, *, count_in: int = 0, count_out: int = 0, **extra: Any) -> None:
        start = self._timers.pop(stage, time.time())
        duration_ms = round((time.time() - start) * 1000, 1)
        self._emit({
            "event": "stage_end",
            "stage": stage,
            "duration_ms": duration_ms,
            "count_in": count_in,
            "count_out": count_out,
            **extra,
        })

    def error(self, stage: str, error: str, **extra: Any) -> None:
        self._emit({"event": "error", "stage": stage, "error": error, **extra})

    def warning(self, stage: str, message: str, **extra: Any) -> None:
        self._emit({"event": "warning", "stage": stage, "message": message, **extra})

    def summary(self, **extra: Any) -> None:
        self._emit({"event": "summary", **extra})


def get_logger(trace_id: Optional[str] = None, output: Optional[TextIO] = None) -> StructuredLogger:
    """A fresh logger per generation run."""
    return StructuredLogger(trace_id=trace_id, output=output)
