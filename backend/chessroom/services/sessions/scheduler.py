"""Single-worker event queue and the timers that feed it.

Every inbound client event and every timer callback goes through
``EventQueue.submit`` and runs on one logical worker, one at a time. Timers
never touch session state from their own task: when they fire they submit
their callback to the queue like any other event.

- ``BackgroundScheduler`` sleeps in Socket.IO background tasks (runtime)
- ``ManualScheduler`` keeps virtual time that tests advance explicitly
"""

import heapq
import itertools
import logging
import queue
import threading
from collections import deque


class TimerHandle:
    """A scheduled callback that can be revoked until the moment it runs."""

    def __init__(self, callback, args) -> None:
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def fire(self) -> None:
        # Runs on the event worker, so a cancel() issued by an earlier event
        # always wins over a wake-up that was already in flight.
        if not self.active:
            return
        self.fired = True
        self.callback(*self.args)


class EventQueue:
    def __init__(self, socketio=None, logger=None, inline: bool = False) -> None:
        self._socketio = socketio
        self._logger = logger or logging.getLogger(__name__)
        self._inline = inline
        self._pending = deque()
        self._draining = False
        self._queue = queue.Queue()
        self._worker_lock = threading.Lock()
        self._worker_started = False

    def submit(self, fn, *args) -> None:
        if self._inline:
            self._pending.append((fn, args))
            # Re-entrant submissions wait for the current event to finish
            if not self._draining:
                self._drain()
            return
        self._ensure_worker()
        self._queue.put((fn, args))

    def _drain(self) -> None:
        self._draining = True
        try:
            while self._pending:
                fn, args = self._pending.popleft()
                self._run(fn, args)
        finally:
            self._draining = False

    def _run(self, fn, args) -> None:
        try:
            fn(*args)
        except Exception:
            self._logger.exception(f"[event-error] handler={getattr(fn, '__name__', fn)}")

    def _ensure_worker(self) -> None:
        with self._worker_lock:
            if self._worker_started:
                return
            self._worker_started = True
        self._socketio.start_background_task(self._worker)

    def _worker(self) -> None:
        while True:
            fn, args = self._queue.get()
            self._run(fn, args)


class BackgroundScheduler:
    def __init__(self, socketio, events: EventQueue) -> None:
        self._socketio = socketio
        self._events = events

    def call_later(self, delay: float, callback, *args) -> TimerHandle:
        # One sleeping task per timer. A cancelled timer keeps its task until
        # the delay runs out, then the wake-up is dropped.
        handle = TimerHandle(callback, args)

        def _sleeper():
            self._socketio.sleep(delay)
            if handle.active:
                self._events.submit(handle.fire)

        self._socketio.start_background_task(_sleeper)
        return handle


class ManualScheduler:
    """Virtual-time scheduler; nothing fires until ``advance`` is called."""

    def __init__(self, events: EventQueue) -> None:
        self._events = events
        self._heap = []
        self._seq = itertools.count()
        self.now = 0.0

    def call_later(self, delay: float, callback, *args) -> TimerHandle:
        handle = TimerHandle(callback, args)
        heapq.heappush(self._heap, (self.now + delay, next(self._seq), handle))
        return handle

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while self._heap and self._heap[0][0] <= target:
            due, _, handle = heapq.heappop(self._heap)
            self.now = due
            if handle.active:
                self._events.submit(handle.fire)
        self.now = target

    def pending(self) -> int:
        return sum(1 for _, _, h in self._heap if h.active)
