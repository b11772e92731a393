from typing import Dict

from .models import BLACK, IN_PROGRESS, WHITE
from .scheduler import TimerHandle


class Clock:
    """Per-session countdown pair, one live tick timer per session.

    Each tick takes one second off the side on move. When a side hits zero
    ``on_timeout(session, color)`` is called with the side that ran out.
    """

    def __init__(self, registry, oracle, scheduler, transport, on_timeout, logger) -> None:
        self._registry = registry
        self._oracle = oracle
        self._scheduler = scheduler
        self._transport = transport
        self._on_timeout = on_timeout
        self._logger = logger
        self._timers: Dict[str, TimerHandle] = {}

    def start(self, session_id: str, tick_interval_ms: int) -> None:
        self.stop(session_id)
        self._schedule(session_id, tick_interval_ms)
        self._logger.info(f"[clock-start] session={session_id} interval={tick_interval_ms}ms")

    def stop(self, session_id: str) -> None:
        handle = self._timers.pop(session_id, None)
        if handle is not None:
            handle.cancel()
            self._logger.info(f"[clock-stop] session={session_id}")

    def is_running(self, session_id: str) -> bool:
        handle = self._timers.get(session_id)
        return handle is not None and handle.active

    def _schedule(self, session_id: str, tick_interval_ms: int) -> None:
        self._timers[session_id] = self._scheduler.call_later(
            tick_interval_ms / 1000.0, self._tick, session_id, tick_interval_ms
        )

    def _tick(self, session_id: str, tick_interval_ms: int) -> None:
        self._timers.pop(session_id, None)
        session = self._registry.get(session_id)
        if session is None or session.status != IN_PROGRESS:
            self._logger.debug(f"[clock-abort] session={session_id} not in progress")
            return

        turn = self._oracle.current_turn(session.position)
        remaining = session.decrement(turn)
        session.touch()
        if remaining == 0:
            self._logger.info(f"[clock-timeout] session={session_id} color={turn}")
            self._on_timeout(session, turn)
            return

        self._transport.broadcast(session.room, 'timerTick', {
            'whiteRemaining': session.remaining(WHITE),
            'blackRemaining': session.remaining(BLACK),
            'turn': turn,
        })
        self._schedule(session_id, tick_interval_ms)
