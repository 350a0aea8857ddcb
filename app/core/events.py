"""
In-process publish/subscribe channel.

Storage and account services publish here after successful writes so other
parts of the application (caches, UI push channels) can refresh without
being called directly.
"""
import enum
import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], None]


class Topic(str, enum.Enum):
    EMPLOYEE_CREATED = "employee_created"
    EMPLOYEE_UPDATED = "employee_updated"
    EMPLOYEE_DELETED = "employee_deleted"
    TEAM_UPDATED = "team_updated"
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    ASSIGNMENTS_CREATED = "assignments_created"
    APPRAISAL_SUBMITTED = "appraisal_submitted"
    PERIOD_UPDATED = "period_updated"


class EventBus:
    def __init__(self):
        self._handlers: Dict[Topic, List[Handler]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, topic: Topic, handler: Handler) -> Callable[[], None]:
        """Register a handler. Returns a callable that removes it again."""
        with self._lock:
            self._handlers[topic].append(handler)

        def unsubscribe() -> None:
            with self._lock:
                if handler in self._handlers[topic]:
                    self._handlers[topic].remove(handler)

        return unsubscribe

    def publish(self, topic: Topic, payload: Dict[str, Any]) -> int:
        """Deliver payload to every handler of topic. Returns the number delivered."""
        with self._lock:
            handlers = list(self._handlers[topic])
        delivered = 0
        for handler in handlers:
            try:
                handler(payload)
                delivered += 1
            except Exception:
                logger.exception(f"Event handler failed for topic {topic.value}")
        return delivered

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()


event_bus = EventBus()
