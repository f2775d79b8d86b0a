from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional

_SPAN_LIMIT = 256
_SPAN_BUFFER: Deque[Dict[str, Any]] = deque(maxlen=_SPAN_LIMIT)


@dataclass
class Span:
    name: str
    attrs: Dict[str, Any] = field(default_factory=dict)
    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None
    error: Optional[str] = None

    def __enter__(self) -> "Span":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.end_time = time.time()
        if exc_type is not None:
            self.error = exc_type.__name__
        record_span(self)

    @property
    def duration_ms(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time) * 1000.0


def span(name: str, **attrs: Any) -> Span:
    return Span(name=name, attrs=attrs)


def record_span(span_obj: Span) -> None:
    _SPAN_BUFFER.append(
        {
            "name": span_obj.name,
            "attrs": dict(span_obj.attrs or {}),
            "start_time": span_obj.start_time,
            "end_time": span_obj.end_time,
            "duration_ms": span_obj.duration_ms,
            "error": span_obj.error,
        }
    )


def get_recent_spans(name: Optional[str] = None) -> List[Dict[str, Any]]:
    if name is None:
        return list(_SPAN_BUFFER)
    return [entry for entry in _SPAN_BUFFER if entry["name"] == name]


def clear_spans() -> None:
    _SPAN_BUFFER.clear()
