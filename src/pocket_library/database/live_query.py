"""Live queries: re-run a SELECT and push fresh snapshots after every write.

A LiveQuery is cheap to create; it does nothing until subscribed. Each
subscriber receives the current rows immediately and then one snapshot per
committed mutation of the ``books`` table, in the order the mutations were
applied. Snapshots are delivered on the thread that performed the write.
"""

import logging
import threading
from typing import Callable

from .models import Book

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[list[Book]], None]


class Subscription:
    """Handle returned by ``LiveQuery.subscribe``; cancel to stop updates."""

    def __init__(self, hub: "ChangeHub", fetch: Callable[[], list[Book]],
                 callback: SnapshotCallback):
        self._hub = hub
        self._fetch = fetch
        self._callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self):
        """Stop receiving snapshots. Safe to call more than once."""
        if self._active:
            self._active = False
            self._hub.remove(self)

    def _emit(self):
        if not self._active:
            return
        try:
            rows = self._fetch()
        except Exception as e:
            logger.error(f"Live query refresh failed: {e}")
            return
        if not self._active:
            return
        try:
            self._callback(rows)
        except Exception:
            logger.exception("Live query subscriber raised; ignoring")


class ChangeHub:
    """Tracks subscriptions for one store and fans out change notices.

    ``write_lock`` is the store's writer lock. Holding it while a new
    subscriber takes its first snapshot keeps that snapshot ordered with
    respect to concurrent writes.
    """

    def __init__(self, write_lock=None):
        self._lock = threading.Lock()
        self.write_lock = write_lock or threading.RLock()
        self._subscriptions: list[Subscription] = []

    def add(self, subscription: Subscription):
        with self._lock:
            self._subscriptions.append(subscription)

    def remove(self, subscription: Subscription):
        with self._lock:
            try:
                self._subscriptions.remove(subscription)
            except ValueError:
                pass

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def notify(self):
        """Push a fresh snapshot to every live subscription."""
        with self._lock:
            targets = list(self._subscriptions)
        for subscription in targets:
            subscription._emit()


class LiveQuery:
    """A re-runnable query over the books table."""

    def __init__(self, hub: ChangeHub, fetch: Callable[[], list[Book]],
                 description: str = ""):
        self._hub = hub
        self._fetch = fetch
        self.description = description

    def snapshot(self) -> list[Book]:
        """Run the query once and return the rows."""
        return self._fetch()

    def subscribe(self, callback: SnapshotCallback) -> Subscription:
        """Emit the current rows now, then again after every change."""
        subscription = Subscription(self._hub, self._fetch, callback)
        with self._hub.write_lock:
            self._hub.add(subscription)
            subscription._emit()
        return subscription

    def __repr__(self) -> str:
        return f"LiveQuery({self.description!r})"
