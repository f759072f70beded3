import logging
import time
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class Resource(str, Enum):
    ROLES = "roles"
    CANDIDATES = "candidates"
    EVALUATIONS = "evaluations"
    DASHBOARD = "dashboard"


Handler = Callable[[Resource, Any], None]


class EventBus:
    """
    Publish/subscribe channel for "this resource changed" notifications.

    Views subscribe to the resource types they render; mutations publish the
    resource types they affect. Handlers run synchronously in subscription order.
    """

    def __init__(self):
        self._handlers: Dict[Resource, List[Handler]] = defaultdict(list)

    def subscribe(self, resource: Resource, handler: Handler) -> Callable[[], None]:
        self._handlers[resource].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[resource]:
                self._handlers[resource].remove(handler)

        return unsubscribe

    def publish(self, resource: Resource, payload: Any = None) -> None:
        for handler in list(self._handlers[resource]):
            try:
                handler(resource, payload)
            except Exception as e:
                logger.error(f"Invalidation handler failed for '{resource.value}': {e}")


class QueryCache:
    """Read cache keyed by resource type, dropped whenever that resource is published."""

    def __init__(self, bus: EventBus, ttl_seconds: float = 30.0, clock: Callable[[], float] = time.monotonic):
        self._bus = bus
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[Resource, Dict[Hashable, Tuple[float, Any]]] = defaultdict(dict)
        for resource in Resource:
            bus.subscribe(resource, self._on_invalidate)

    @property
    def bus(self) -> EventBus:
        return self._bus

    def get(self, resource: Resource, key: Hashable) -> Optional[Any]:
        entry = self._entries[resource].get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at > self._ttl:
            del self._entries[resource][key]
            return None
        return value

    def set(self, resource: Resource, key: Hashable, value: Any) -> None:
        now = self._clock()
        self._purge_expired(now)
        self._entries[resource][key] = (now, value)

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries.values())

    def _purge_expired(self, now: float) -> None:
        for entries in self._entries.values():
            expired = [key for key, (stored_at, _) in entries.items() if now - stored_at > self._ttl]
            for key in expired:
                del entries[key]

    def invalidate(self, *resources: Resource) -> None:
        for resource in resources:
            self._bus.publish(resource)

    def _on_invalidate(self, resource: Resource, payload: Any) -> None:
        dropped = len(self._entries[resource])
        self._entries[resource].clear()
        if dropped:
            logger.info(f"Dropped {dropped} cached '{resource.value}' entries")
