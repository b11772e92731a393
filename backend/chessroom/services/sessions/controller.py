"""Session lifecycle controller.

The controller is the only entry point for client events. Socket handlers
call ``submit`` and return; the event queue then runs ``handle`` for one
event at a time, so handlers can read and write a session without locks.

State machine per session: waiting -> in_progress -> finished.
"""

from typing import Any, Dict, Mapping, Optional

from .authority import MoveAuthority
from .chat import ChatEntry
from .clock import Clock
from .errors import GameNotFound, InvalidRequest, NotInGame, SessionError
from .models import (IN_PROGRESS, WAITING, ConnectionBinding, Session,
                     opposite, room_for)
from .oracle import ChessOracle
from .reconnect import ReconnectionSupervisor
from .registry import SessionRegistry
from .scheduler import TimerHandle


class SessionController:

    def __init__(self, config: Mapping[str, Any], transport, scheduler, events, logger, oracle=None) -> None:
        self.transport = transport
        self.scheduler = scheduler
        self.events = events
        self.logger = logger
        self.oracle = oracle or ChessOracle()

        self.tick_interval_ms = int(config.get('CLOCK_TICK_MS', 1000))
        self.retention_sec = int(config.get('FINISHED_RETENTION_SEC', 30))

        self.registry = SessionRegistry(
            self.oracle,
            initial_seconds=int(config.get('INITIAL_CLOCK_SECONDS', 600)),
            chat_capacity=int(config.get('CHAT_HISTORY_LIMIT', 50)),
            chat_message_limit=int(config.get('CHAT_MESSAGE_LIMIT', 200)),
            logger=logger,
        )
        self.clock = Clock(self.registry, self.oracle, scheduler, transport, self._clock_expired, logger)
        self.registry.on_remove(self.clock.stop)
        self.authority = MoveAuthority(self.oracle, self.clock, transport, self._game_over, logger)
        self.supervisor = ReconnectionSupervisor(
            scheduler, transport, int(config.get('RECONNECT_GRACE_MS', 30000)), self._grace_expired, logger
        )

        self._connections: Dict[str, ConnectionBinding] = {}
        self._cleanup_timers: Dict[str, TimerHandle] = {}
        self._handlers = {
            'connect': self.connect,
            'disconnect': self.disconnect,
            'joinGame': self.join,
            'leaveGame': self.leave,
            'move': self.move,
            'chatMessage': self.chat,
            'reconnect': self.reconnect,
            'ping': self.ping,
        }

    # ---- Event entry points ----

    def submit(self, event: str, connection: str, payload: Any = None) -> None:
        """Queue an inbound event for the single worker."""
        self.events.submit(self.handle, event, connection, payload)

    def handle(self, event: str, connection: str, payload: Any = None) -> None:
        handler = self._handlers.get(event)
        if handler is None:
            self.logger.warning(f"[event-unknown] event={event} sid={connection}")
            return
        try:
            handler(connection, payload)
        except SessionError as err:
            self.logger.info(f"[rejected] event={event} sid={connection} code={err.code}")
            if event == 'move' and err.reason:
                self.transport.send(connection, 'moveRejected', {'reason': err.reason, 'move': payload})
            else:
                self.transport.send(connection, 'error', err.to_dict())

    def connect(self, connection: str, payload: Any = None) -> None:
        self.logger.info(f"[connect] sid={connection}")
        self.transport.send(connection, 'connected', {'message': 'Connected'})

    def ping(self, connection: str, payload: Any = None) -> None:
        self.transport.send(connection, 'pong', payload or {})

    def join(self, connection: str, payload: Any) -> None:
        code = self.registry.normalize(_require(payload, 'code'))
        current = self._connections.get(connection)
        if current is not None:
            if current.session_id == code:
                raise InvalidRequest('Already joined this game')
            # The old seat is kept when the new one cannot be taken
            self.registry.ensure_seat(code)
            self._release(connection)

        session = self.registry.get_or_create(code)
        color = self.registry.assign_color(session, connection)
        self._connections[connection] = ConnectionBinding(session.id, color)
        self.transport.join(connection, session.room)
        self.logger.info(f"[join] session={session.id} sid={connection} color={color}")

        if session.is_full():
            session.start()
        self.transport.send(connection, 'gameJoined', {
            'color': color,
            'waiting': session.status == WAITING,
            'gameState': session.to_dict(self.oracle),
        })
        if session.status == IN_PROGRESS:
            self.clock.start(session.id, self.tick_interval_ms)
            self.transport.broadcast(session.room, 'gameStarted', {'gameState': session.to_dict(self.oracle)})
            self.logger.info(f"[game-started] session={session.id}")

    def move(self, connection: str, payload: Any) -> None:
        if not isinstance(payload, Mapping) or not payload.get('from') or not payload.get('to'):
            raise InvalidRequest('Move requires from and to squares')
        session = self._bound_session(connection)
        self.authority.submit_move(session, connection, payload)

    def chat(self, connection: str, payload: Any) -> None:
        session = self._bound_session(connection)
        color = session.color_of(connection)
        if not isinstance(payload, Mapping):
            raise InvalidRequest('Chat message is required')
        text = payload.get('msg', payload.get('message'))
        entry: ChatEntry = session.chat.append(color, text)
        self.transport.broadcast(session.room, 'chatReceived', entry.to_dict())
        self.logger.info(f"[chat] session={session.id} color={color} length={len(entry.text)}")

    def disconnect(self, connection: str, payload: Any = None) -> None:
        self.logger.info(f"[disconnect] sid={connection}")
        self._release(connection)

    def leave(self, connection: str, payload: Any = None) -> None:
        binding = self._connections.get(connection)
        self._release(connection)
        self.transport.send(connection, 'left', {
            'room': room_for(binding.session_id) if binding else None,
        })

    def reconnect(self, connection: str, payload: Any) -> None:
        if not isinstance(payload, Mapping):
            raise InvalidRequest('gameCode is required')
        code = payload.get('gameCode') or payload.get('code')
        if not code:
            raise InvalidRequest('gameCode is required')
        session = self.registry.get(code)
        if session is None or session.status != IN_PROGRESS:
            raise GameNotFound()
        if session.color_of(connection) is not None:
            raise InvalidRequest('Already joined this game')
        if self.supervisor.claimable(session) is None:
            raise GameNotFound('No seat awaiting reconnection')

        if connection in self._connections:
            self._release(connection)
        color = self.supervisor.claim(session, connection)
        self._connections[connection] = ConnectionBinding(session.id, color)
        self.transport.join(connection, session.room)
        self.logger.info(f"[reconnect] session={session.id} sid={connection} color={color}")

        self.transport.send(connection, 'gameJoined', {
            'color': color,
            'waiting': False,
            'reconnected': True,
            'gameState': session.to_dict(self.oracle),
        })
        self.transport.broadcast(session.room, 'playerReconnected', {'color': color})

    # ---- Terminal path and cleanup ----

    def cleanup(self, session_id: str) -> None:
        """Destroy a session and everything hanging off it. Idempotent."""
        code = self.registry.normalize(session_id)
        handle = self._cleanup_timers.pop(code, None)
        if handle is not None:
            handle.cancel()
        self.supervisor.cancel_all(code)
        session = self.registry.get(code)
        if session is None:
            return
        for connection in session.connections():
            binding = self._connections.get(connection)
            if binding is not None and binding.session_id == code:
                del self._connections[connection]
                self.transport.leave(connection, session.room)
        self.transport.close_room(session.room)
        self.registry.remove(code)
        self.logger.info(f"[cleanup] session={code}")

    def _conclude(self, session: Session, winner: str, reason: str) -> None:
        if not session.finish(winner, reason):
            return
        self.clock.stop(session.id)
        self._game_over(session)

    def _game_over(self, session: Session) -> None:
        self.supervisor.cancel_all(session.id)
        self.logger.info(
            f"[game-ended] session={session.id} winner={session.result.winner} reason={session.result.reason}"
        )
        self.transport.broadcast(session.room, 'gameEnded', {
            'result': session.result.to_dict(),
            'gameState': session.to_dict(self.oracle),
        })
        if session.is_empty():
            self.cleanup(session.id)
        else:
            self._cleanup_timers[session.id] = self.scheduler.call_later(
                self.retention_sec, self.cleanup, session.id
            )

    def _clock_expired(self, session: Session, color: str) -> None:
        self._conclude(session, opposite(color), 'timeout')

    def _grace_expired(self, session_id: str, color: str) -> None:
        session = self.registry.get(session_id)
        if session is None or session.status != IN_PROGRESS or session.binding(color) is not None:
            return
        self._conclude(session, opposite(color), 'disconnect')

    def _release(self, connection: str) -> None:
        """Drop the connection's binding, following the session's disconnect rules."""
        binding = self._connections.pop(connection, None)
        if binding is None:
            return
        session = self.registry.get(binding.session_id)
        if session is None or session.binding(binding.color) != connection:
            return
        self.transport.leave(connection, session.room)
        if session.status == IN_PROGRESS:
            self.supervisor.handle_disconnect(session, binding.color)
            return
        session.unbind(binding.color)
        if session.is_empty():
            self.cleanup(session.id)

    def _bound_session(self, connection: str) -> Session:
        binding = self._connections.get(connection)
        session = self.registry.get(binding.session_id) if binding else None
        if session is None:
            raise NotInGame()
        return session

    # ---- Observability ----

    def snapshot(self, session_id: str) -> Optional[Dict[str, Any]]:
        session = self.registry.get(session_id)
        return session.to_dict(self.oracle) if session else None

    def stats(self) -> Dict[str, Any]:
        return {'games': len(self.registry), 'players': len(self._connections)}

    def log_status(self) -> None:
        stats = self.stats()
        self.logger.info(f"[status] sessions={stats['games']} connections={stats['players']}")

    def start_status_log(self, interval_sec: int) -> None:
        if interval_sec <= 0:
            return

        def _beat():
            self.log_status()
            self.scheduler.call_later(interval_sec, _beat)

        self.scheduler.call_later(interval_sec, _beat)


def _require(payload: Any, key: str) -> str:
    value = payload.get(key) if isinstance(payload, Mapping) else None
    if not value or not isinstance(value, str) or not value.strip():
        raise InvalidRequest(f"{key} is required")
    return value
