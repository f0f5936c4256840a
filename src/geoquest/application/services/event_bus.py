from collections import defaultdict
from dataclasses import dataclass
import logging
from typing import Callable, DefaultDict, List, Type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Subscription:
    priority: int
    order: int
    handler: Callable[[object], None]


class EventBus:
    """In-process domain event dispatch.

    Handlers run in priority order (lower first, ties by subscription order).
    A failing handler is logged and skipped; it never aborts the command that
    published the event.
    """

    def __init__(self) -> None:
        self._subscriptions: DefaultDict[Type[object], List[_Subscription]] = defaultdict(list)
        self._counter = 0
        self._last_errors: List[Exception] = []

    def subscribe(self, event_type: Type[object], handler: Callable[[object], None], *, priority: int = 100) -> None:
        bucket = self._subscriptions[event_type]
        bucket.append(_Subscription(int(priority), self._counter, handler))
        bucket.sort(key=lambda sub: (sub.priority, sub.order))
        self._counter += 1

    def unsubscribe(self, event_type: Type[object], handler: Callable[[object], None]) -> None:
        self._subscriptions[event_type] = [
            sub for sub in self._subscriptions[event_type] if sub.handler is not handler
        ]

    def publish(self, event: object) -> None:
        self._last_errors = []
        event_type = type(event)
        for sub in list(self._subscriptions[event_type]):
            try:
                sub.handler(event)
            except Exception as exc:
                self._last_errors.append(exc)
                logger.exception(
                    "Event handler failed and was isolated",
                    extra={
                        "event_type": event_type.__name__,
                        "handler": getattr(sub.handler, "__qualname__", repr(sub.handler)),
                        "priority": sub.priority,
                    },
                )

    def last_publish_errors(self) -> List[Exception]:
        return list(self._last_errors)
