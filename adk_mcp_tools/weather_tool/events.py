"""
Weather Event Bus

Synchronous in-process dispatch of WeatherEvent values to subscribed handlers.

Subscription patterns come in three forms:
    - "*"              every event
    - "weather.*"      every event whose type starts with "weather."
    - "weather.current" only that exact type

Patterns are classified once at subscription time, so publishing only
compares the event's precomputed (domain, kind) pair.
"""

import logging
from enum import Enum
from typing import Callable, List, Optional

from .models import WeatherEvent

logger = logging.getLogger(__name__)

WILDCARD = "*"

EventHandler = Callable[[WeatherEvent], None]
Unsubscribe = Callable[[], None]


class PatternKind(Enum):
    UNIVERSAL = "universal"
    PREFIX = "prefix"
    EXACT = "exact"


class EventPattern:
    """A classified subscription pattern."""

    __slots__ = ("raw", "kind", "domain")

    def __init__(self, raw: str):
        if not isinstance(raw, str) or not raw:
            raise ValueError("Event pattern must be a non-empty string")
        self.raw = raw
        self.domain: Optional[str] = None
        if raw == WILDCARD:
            self.kind = PatternKind.UNIVERSAL
        elif raw.endswith(".*"):
            domain = raw[:-2]
            # Event domains are the first segment only
            if not domain or "." in domain:
                raise ValueError(f"Prefix pattern must be '<domain>.*' with a single-segment domain, got {raw!r}")
            self.kind = PatternKind.PREFIX
            self.domain = domain
        else:
            self.kind = PatternKind.EXACT

    def matches(self, event: WeatherEvent) -> bool:
        if self.kind is PatternKind.UNIVERSAL:
            return True
        if self.kind is PatternKind.PREFIX:
            return event.domain == self.domain and event.type != event.domain
        return event.type == self.raw

    def __repr__(self) -> str:
        return f"EventPattern({self.raw!r}, {self.kind.value})"


class Subscription:
    """One registered handler. Two registrations of the same handler are two subscriptions."""

    __slots__ = ("pattern", "handler", "once", "active")

    def __init__(self, pattern: EventPattern, handler: EventHandler, once: bool = False):
        self.pattern = pattern
        self.handler = handler
        self.once = once
        self.active = True


class EventBus:
    """
    Registry of subscriptions plus synchronous publication.

    Handlers run in registration order. A failing handler is logged and
    skipped; it never stops the remaining handlers and never reaches the
    publisher.
    """

    def __init__(self):
        self._subscriptions: List[Subscription] = []

    def __len__(self) -> int:
        return len(self._subscriptions)

    def on(self, pattern: str, handler: EventHandler) -> Unsubscribe:
        """Register `handler` for `pattern`; returns an idempotent unsubscribe function."""
        return self._add(pattern, handler, once=False)

    subscribe = on

    def once(self, pattern: str, handler: EventHandler) -> Unsubscribe:
        """Like `on`, but the subscription is dropped before its first invocation."""
        return self._add(pattern, handler, once=True)

    def off(self, event_type: str) -> int:
        """Remove every subscription whose pattern string equals `event_type`."""
        removed = [s for s in self._subscriptions if s.pattern.raw == event_type]
        for subscription in removed:
            self._remove(subscription)
        if removed:
            logger.debug(f"Removed {len(removed)} subscription(s) for '{event_type}'")
        return len(removed)

    def clear(self) -> None:
        for subscription in list(self._subscriptions):
            self._remove(subscription)

    def publish(self, event: WeatherEvent) -> int:
        """Deliver `event` to every matching subscription; returns how many handlers ran."""
        delivered = 0
        for subscription in list(self._subscriptions):
            # Removed by an earlier handler during this same publish.
            if not subscription.active:
                continue
            if not subscription.pattern.matches(event):
                continue
            if subscription.once:
                self._remove(subscription)
            delivered += 1
            try:
                subscription.handler(event)
            except Exception:
                logger.exception(
                    f"Event handler for pattern '{subscription.pattern.raw}' "
                    f"failed on '{event.type}'"
                )
        return delivered

    emit = publish

    def _add(self, pattern: str, handler: EventHandler, once: bool) -> Unsubscribe:
        if not callable(handler):
            raise TypeError("Event handler must be callable")
        subscription = Subscription(EventPattern(pattern), handler, once=once)
        self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            self._remove(subscription)

        return unsubscribe

    def _remove(self, subscription: Subscription) -> None:
        if not subscription.active:
            return
        subscription.active = False
        self._subscriptions.remove(subscription)


__all__ = [
    "WILDCARD",
    "EventHandler",
    "EventPattern",
    "PatternKind",
    "Subscription",
    "EventBus",
]
