"""
Dashboard event system.

Events are emitted while a dashboard loads so a UI can render progressively:
- Shell ready (context known, domains start loading)
- Domain loaded (one data slice arrived)
- Domain failed (one data slice fell back to its empty default)
- Setup error (no organization or user; nothing is fetched)
"""

import logging
import threading
import time
from abc import ABC
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from .types import DataDomain

logger = logging.getLogger(__name__)


@dataclass
class DashboardEvent(ABC):
    """Base class for all dashboard events."""
    timestamp: float = field(default_factory=time.time)
    organization_id: str = ""
    epoch: int = 0


@dataclass
class ShellReadyEvent(DashboardEvent):
    """
    Core context is available and the UI shell can render.

    Every domain in ``required_domains`` is loading at this point.
    """
    user_id: str = ""
    role: str = ""
    required_domains: List[DataDomain] = field(default_factory=list)


@dataclass
class DomainLoadedEvent(DashboardEvent):
    """A domain's data arrived (from cache or from its supplier)."""
    domain: Optional[DataDomain] = None
    data: Any = None


@dataclass
class DomainFailedEvent(DashboardEvent):
    """
    A domain's supplier failed.

    The domain shows its empty default; other domains are unaffected.
    """
    domain: Optional[DataDomain] = None
    error: str = ""


@dataclass
class SetupErrorEvent(DashboardEvent):
    """The dashboard could not start loading (missing context)."""
    error: str = ""


E = TypeVar("E", bound=DashboardEvent)


class EventEmitter:
    """
    Simple pub/sub for dashboard events.

    Usage:
        loader = DashboardLoader(...)   # a DashboardLoader is an EventEmitter

        @loader.on(DomainLoadedEvent)
        def on_loaded(event: DomainLoadedEvent):
            render(event.domain, event.data)
    """

    def __init__(self) -> None:
        self._handlers: Dict[Type[DashboardEvent], List[Callable[..., None]]] = {}
        self._global_handlers: List[Callable[[DashboardEvent], None]] = []
        self._lock = threading.Lock()

    def on(self, event_type: Type[E]) -> Callable[[Callable[[E], None]], Callable[[E], None]]:
        """
        Decorator to register a handler for one event type.

        Args:
            event_type: The event class to handle
        """
        def decorator(func: Callable[[E], None]) -> Callable[[E], None]:
            self.add_handler(event_type, func)
            return func
        return decorator

    def on_any(self, func: Callable[[DashboardEvent], None]) -> Callable[[DashboardEvent], None]:
        """Register a handler for all events."""
        with self._lock:
            self._global_handlers.append(func)
        return func

    def add_handler(self, event_type: Type[E], handler: Callable[[E], None]) -> None:
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)

    def remove_handler(self, event_type: Type[E], handler: Callable[[E], None]) -> None:
        with self._lock:
            if event_type in self._handlers:
                self._handlers[event_type] = [
                    h for h in self._handlers[event_type] if h != handler
                ]

    def emit(self, event: DashboardEvent) -> None:
        """
        Deliver an event to global handlers, then type-specific handlers.

        Handler lists are snapshotted under the lock and called without it,
        so a handler may register or remove handlers. A failing handler is
        logged and does not stop delivery.
        """
        with self._lock:
            global_snapshot = list(self._global_handlers)
            specific_snapshot = list(self._handlers.get(type(event), []))

        for handler in global_snapshot + specific_snapshot:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Event handler error ({type(event).__name__}): {e}")

    def clear_handlers(self, event_type: Optional[Type[E]] = None) -> None:
        """Clear handlers for one event type, or all handlers if None."""
        with self._lock:
            if event_type is not None:
                self._handlers[event_type] = []
            else:
                self._handlers.clear()
                self._global_handlers.clear()

    def handler_count(self, event_type: Optional[Type[E]] = None) -> int:
        with self._lock:
            if event_type is not None:
                return len(self._handlers.get(event_type, []))
            return sum(len(h) for h in self._handlers.values()) + len(self._global_handlers)
