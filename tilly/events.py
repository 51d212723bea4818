"""One-way notification channel: toasts, navigation and theme changes.

Handlers publish here and move on; nothing a subscriber does can change a
command's result. Front-ends subscribe to render what they can (the console
prints toasts, a desktop UI would switch pages).
"""

import threading
from collections import deque

HISTORY_LIMIT = 100  # most recent events kept for inspection


def _log(msg):
    print(msg, flush=True)


class EventChannel:
    """Fire-and-forget publish/subscribe. Subscribers are cb(kind, data) -> None."""

    def __init__(self):
        self._subscribers = []
        self._lock = threading.Lock()
        self.history = deque(maxlen=HISTORY_LIMIT)  # (kind, data), newest last

    def subscribe(self, cb, kinds=None):
        """Call cb for every event, or only for the given kinds."""
        with self._lock:
            self._subscribers = self._subscribers + [(cb, frozenset(kinds) if kinds else None)]

    def emit(self, kind, **data):
        self.history.append((kind, data))
        for cb, kinds in self._subscribers:
            if kinds is not None and kind not in kinds:
                continue
            try:
                cb(kind, data)
            except Exception as e:
                _log(f"  [events] subscriber failed on {kind}: {e}")
