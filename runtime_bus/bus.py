from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from .messages import MessageEnvelope

logger = logging.getLogger(__name__)

Handler = Callable[[MessageEnvelope], None]


def _iso_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class RuntimeBus:
    """In-process pub/sub. Delivery is synchronous and in subscription order."""

    def __init__(self):
        self._lock = threading.RLock()
        self._subscribers: Dict[str, tuple[str, Handler]] = {}
        self._topic_index: Dict[str, List[str]] = {}

    def subscribe(self, topic: str, handler: Handler) -> str:
        sub_id = str(uuid.uuid4())
        with self._lock:
            self._subscribers[sub_id] = (topic, handler)
            self._topic_index.setdefault(topic, []).append(sub_id)
        return sub_id

    def unsubscribe(self, sub_id: str) -> None:
        with self._lock:
            topic, _ = self._subscribers.pop(sub_id, (None, None))
            if topic and topic in self._topic_index:
                if sub_id in self._topic_index[topic]:
                    self._topic_index[topic].remove(sub_id)
                if not self._topic_index[topic]:
                    self._topic_index.pop(topic, None)

    def unsubscribe_handler(self, topic: str, handler: Handler) -> bool:
        """Drop the earliest subscription of ``handler`` on ``topic``."""
        with self._lock:
            for sub_id in self._topic_index.get(topic, ()):
                if self._subscribers[sub_id][1] is handler:
                    self.unsubscribe(sub_id)
                    return True
        return False

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._topic_index.get(topic, ()))

    def clear(self) -> None:
        with self._lock:
            self._subscribers.clear()
            self._topic_index.clear()

    def publish(
        self,
        topic: str,
        payload: Optional[Dict[str, object]],
        source: str,
        trace_id: Optional[str] = None,
    ) -> MessageEnvelope:
        envelope = self._build_envelope(topic, payload, source, trace_id)
        handlers = self._copy_handlers(topic)
        for handler in handlers:
            try:
                handler(envelope)
            except Exception as exc:
                logger.error("runtime_bus publish handler error on %s: %s", topic, exc)
        return envelope

    def _build_envelope(
        self,
        topic: str,
        payload: Optional[Dict[str, object]],
        source: str,
        trace_id: Optional[str],
    ) -> MessageEnvelope:
        trace = trace_id or str(uuid.uuid4())
        body = payload if isinstance(payload, dict) else {}
        return MessageEnvelope(
            msg_id=str(uuid.uuid4()),
            type=topic,
            timestamp=_iso_timestamp(),
            source=source,
            payload=dict(body),
            trace_id=trace,
        )

    def _copy_handlers(self, topic: str) -> list[Handler]:
        with self._lock:
            sub_ids = list(self._topic_index.get(topic, ()))
            handlers = [self._subscribers[sid][1] for sid in sub_ids if sid in self._subscribers]
        return handlers
