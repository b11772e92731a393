from typing import Dict, Optional, Tuple

from .models import Session
from .scheduler import TimerHandle


class ReconnectionSupervisor:
    """Grace-period timers for players who dropped out of a running game.

    One timer per (session, color). If it fires before the seat is
    reclaimed, ``on_expired(session_id, color)`` is called.
    """

    def __init__(self, scheduler, transport, grace_ms: int, on_expired, logger) -> None:
        self._scheduler = scheduler
        self._transport = transport
        self.grace_ms = grace_ms
        self._on_expired = on_expired
        self._logger = logger
        self._pending: Dict[Tuple[str, str], TimerHandle] = {}

    @property
    def grace_seconds(self) -> int:
        return self.grace_ms // 1000

    def handle_disconnect(self, session: Session, color: str) -> None:
        session.unbind(color)
        self._transport.broadcast(session.room, 'playerDisconnected', {
            'color': color,
            'reconnectTimeoutSeconds': self.grace_seconds,
        })
        self.cancel(session.id, color)
        self._pending[(session.id, color)] = self._scheduler.call_later(
            self.grace_ms / 1000.0, self._expire, session.id, color
        )
        self._logger.info(f"[grace-start] session={session.id} color={color} timeout={self.grace_ms}ms")

    def claimable(self, session: Session) -> Optional[str]:
        """Color a reconnecting player would get, earliest disconnect first."""
        for (session_id, color), handle in self._pending.items():
            if session_id == session.id and handle.active and session.binding(color) is None:
                return color
        return None

    def claim(self, session: Session, connection: str) -> Optional[str]:
        color = self.claimable(session)
        if color is None:
            return None
        self.cancel(session.id, color)
        session.bind(color, connection)
        self._logger.info(f"[grace-claim] session={session.id} color={color}")
        return color

    def cancel(self, session_id: str, color: str) -> None:
        handle = self._pending.pop((session_id, color), None)
        if handle is not None:
            handle.cancel()

    def cancel_all(self, session_id: str) -> None:
        for key in [k for k in self._pending if k[0] == session_id]:
            self.cancel(*key)

    def is_pending(self, session_id: str, color: str) -> bool:
        handle = self._pending.get((session_id, color))
        return handle is not None and handle.active

    def _expire(self, session_id: str, color: str) -> None:
        self._pending.pop((session_id, color), None)
        self._logger.info(f"[grace-expired] session={session_id} color={color}")
        self._on_expired(session_id, color)
