"""
Declared-event publish/subscribe capability.

EventBus can be used as a plain base class or mixed into another object with
fetch_lifecycle.compose. Its state lives in the owner's ``events`` attribute,
created lazily on first declaration and guarded by a lock of its own.
"""
import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

logger = logging.getLogger("fetch_lifecycle.events")

Subscriber = Callable[[Dict[str, Any]], Any]

# Guards only the lazy creation of per-owner locks.
_owner_lock_guard = threading.Lock()


class EventBus:
    """
    Per-owner map of event name to ordered subscribers.

    An owner must declare its event names before anyone can subscribe to
    them. Firing or subscribing to an undeclared name is ignored.

    Example:
        bus = EventBus("ping")
        bus.subscribe("ping", lambda event: print(event["type"]))
        bus.fire("ping", {"seq": 1})
    """

    def __init__(self, *names: Union[str, Iterable[str]]) -> None:
        self.events: Dict[str, List[Subscriber]] = {}
        if names:
            self.declare(*names)

    def _table_lock(self):
        lock = getattr(self, "_events_lock", None)
        if lock is None:
            with _owner_lock_guard:
                lock = getattr(self, "_events_lock", None)
                if lock is None:
                    lock = threading.RLock()
                    self._events_lock = lock
        return lock

    def _event_table(self) -> Optional[Dict[str, List[Subscriber]]]:
        return getattr(self, "events", None)

    def declare(self, *names: Union[str, Iterable[str]]) -> None:
        """
        Declare event names, given as arguments or as one list.

        Names that are already declared keep their subscribers.
        """
        if len(names) == 1 and not isinstance(names[0], str):
            names = tuple(names[0])

        with self._table_lock():
            events = self._event_table()
            if events is None:
                events = {}
                self.events = events
            for name in names:
                if name not in events:
                    events[name] = []

    def subscribe(self, name: str, fn: Subscriber) -> None:
        """Append a subscriber. No-op if the name was never declared."""
        with self._table_lock():
            events = self._event_table()
            if not events or name not in events:
                logger.debug(f"EventBus.subscribe: ignoring undeclared event {name!r}")
                return
            events[name].append(fn)

    def unsubscribe(self, name: str, fn: Subscriber) -> None:
        """Remove the first matching subscriber, if any."""
        with self._table_lock():
            events = self._event_table()
            if not events or name not in events:
                return
            try:
                events[name].remove(fn)
            except ValueError:
                pass

    def fire(self, name: str, extra: Optional[Mapping[str, Any]] = None) -> Any:
        """
        Publish an event.

        Every subscriber receives ``{"target": owner, "type": name, **extra}``
        in subscription order. The result is whatever the last subscriber
        returned: a falsy return does not stop later subscribers, it is simply
        overwritten by the next one. Returns False for undeclared names and
        True when the name is declared but has no subscribers.
        """
        with self._table_lock():
            events = self._event_table()
            if not events or name not in events:
                return False
            subscribers = list(events[name])

        event: Dict[str, Any] = {"target": self, "type": name}
        if extra:
            event.update(extra)

        bubble: Any = True
        for fn in subscribers:
            bubble = fn(event)
        return bubble

    def is_observed(self, name: str) -> bool:
        """True if the name is declared, whether or not anyone subscribed."""
        with self._table_lock():
            events = self._event_table()
            return bool(events) and name in events

    def purge(self) -> None:
        """Drop every declared name and subscriber."""
        with self._table_lock():
            self.events = {}
