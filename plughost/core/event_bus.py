"""
Event Bus - Before/after notifications around plugin lifecycle transitions.

This module implements:
1. Exact subscriptions: handler runs for one event id
2. Pattern subscriptions: handler runs for every event id matching a glob

All subscriptions support:
- Priority-based execution (higher priority = earlier execution)
- Registration order as tie-breaker for equal priorities
- Failure isolation (a failing subscriber never stops the dispatch)
"""

import inspect
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


class EventBusError(Exception):
    """Base exception for event bus errors."""

    pass


class RegistrationError(EventBusError):
    """Raised when handler registration fails."""

    pass


@dataclass
class Handler:
    """
    Represents a registered event handler.

    Attributes:
        callback: The handler function
        priority: Higher priority executes first
        registration_order: Tie-breaker for same priority (lower = earlier)
        requires_src: Whether handler expects the event id as first parameter
    """

    callback: Callable
    priority: int
    registration_order: int
    requires_src: bool = False

    def __call__(self, event_id: str, event: Any) -> None:
        """Execute the handler."""
        if self.requires_src:
            self.callback(event_id, event)
        else:
            self.callback(event)


class EventBus:
    """
    Event bus owned by a single plugins service.

    Subscribers are notified in priority order. Exceptions raised by a
    subscriber are logged and the remaining subscribers still run.
    """

    def __init__(self):
        self._routes: dict[str, list[Handler]] = {}
        self._patterns: list[tuple[re.Pattern, Handler]] = []
        self._registration_counter = 0

    def _next_registration_order(self) -> int:
        """Get next registration order number."""
        order = self._registration_counter
        self._registration_counter += 1
        return order

    def _glob_to_regex(self, pattern: str) -> re.Pattern:
        """
        Convert glob pattern to compiled regex.

        ``*`` matches any characters within a segment (not across dots).

        Example:
            'plugins.before_*' matches 'plugins.before_install'
        """
        escaped = re.escape(pattern)
        regex_pattern = escaped.replace(r"\*", "[^.]*")
        return re.compile(f"^{regex_pattern}$")

    def _sort_handlers(self, handlers: list[Handler]) -> list[Handler]:
        """Sort handlers by priority (descending) and registration order (ascending)."""
        return sorted(handlers, key=lambda h: (-h.priority, h.registration_order))

    def register_consumer(
        self, event_id: str, callback: Callable, priority: int = 0
    ) -> None:
        """
        Register a consumer for an exact event id.

        Args:
            event_id: Exact event ID to match
            callback: Handler function taking (event)
            priority: Execution priority (higher = earlier)
        """
        handler = Handler(
            callback=callback,
            priority=priority,
            registration_order=self._next_registration_order(),
        )
        self._routes.setdefault(event_id, []).append(handler)

    def register_consumer_re(
        self, pattern: str, callback: Callable, priority: int = 0
    ) -> None:
        """
        Register a consumer for every event id matching a glob pattern.

        Args:
            pattern: Glob pattern to match event IDs
            callback: Handler function taking (src: str, event)
            priority: Execution priority (higher = earlier)

        Raises:
            RegistrationError: If callback doesn't accept 'src' parameter
        """
        params = list(inspect.signature(callback).parameters.keys())
        if len(params) < 1 or params[0] != "src":
            raise RegistrationError(
                f"Pattern-based consumer must have 'src' as first parameter. "
                f"Got: {params}"
            )

        handler = Handler(
            callback=callback,
            priority=priority,
            registration_order=self._next_registration_order(),
            requires_src=True,
        )
        self._patterns.append((self._glob_to_regex(pattern), handler))

    def unregister(self, callback: Callable) -> int:
        """
        Remove every subscription made with ``callback``.

        Returns:
            Number of subscriptions removed
        """
        removed = 0
        for event_id, handlers in list(self._routes.items()):
            kept = [h for h in handlers if h.callback is not callback]
            removed += len(handlers) - len(kept)
            self._routes[event_id] = kept

        kept_patterns = [(p, h) for p, h in self._patterns if h.callback is not callback]
        removed += len(self._patterns) - len(kept_patterns)
        self._patterns = kept_patterns
        return removed

    def _find_handlers(self, event_id: str) -> list[Handler]:
        """Combine exact and pattern matches, then sort by priority."""
        handlers = list(self._routes.get(event_id, []))
        for pattern, handler in self._patterns:
            if pattern.match(event_id):
                handlers.append(handler)
        return self._sort_handlers(handlers)

    def dispatch(self, event_id: str, event: Any = None) -> None:
        """
        Notify every subscriber of ``event_id``.

        Args:
            event_id: The event identifier
            event: The event payload
        """
        for handler in self._find_handlers(event_id):
            try:
                handler(event_id, event)
            except Exception:
                logger.exception(f"Event handler failed for '{event_id}'")

    def clear(self) -> None:
        """Drop every subscription."""
        self._routes.clear()
        self._patterns.clear()
