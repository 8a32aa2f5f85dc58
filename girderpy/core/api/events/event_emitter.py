"""Named-event dispatch for fetcher notifications (listing_ready, fetch_failed)."""
from collections import defaultdict
from typing import Callable, DefaultDict, List, Optional


class EventEmitter:
    """
    Synchronous publish/subscribe keyed by event name.

    Handlers run in registration order on the caller's stack, so a handler
    sees the fetcher state exactly as it was when the event fired.
    """

    def __init__(self):
        self._handlers: DefaultDict[str, List[Callable]] = defaultdict(list)

    def on(self, event: str, callback: Callable) -> 'EventEmitter':
        self._handlers[event].append(callback)
        return self

    def emit(self, event: str, *args, **kwargs):
        # a handler may unsubscribe itself while running
        for callback in tuple(self._handlers.get(event, ())):
            callback(*args, **kwargs)

    def off(self, event: str, callback: Optional[Callable] = None) -> 'EventEmitter':
        """Unsubscribe ``callback``, or every handler of ``event`` when omitted."""
        handlers = self._handlers.get(event)
        if handlers is None:
            return self
        if callback is None:
            handlers.clear()
        else:
            handlers[:] = [handler for handler in handlers if handler != callback]
        if not handlers:
            del self._handlers[event]
        return self

    def listener_count(self, event: str) -> int:
        return len(self._handlers.get(event, ()))
