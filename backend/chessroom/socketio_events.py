from flask import current_app, request

from chessroom import socketio


class SocketIOTransport:
    """Room-scoped delivery on top of the shared SocketIO instance.

    Usable outside a request context, so the event worker and timers can
    emit and manage rooms directly.
    """

    def __init__(self, sio, namespace: str = '/ws') -> None:
        self._sio = sio
        self.namespace = namespace

    def send(self, connection: str, event: str, payload) -> None:
        self._sio.emit(event, payload, to=connection, namespace=self.namespace)

    def broadcast(self, room: str, event: str, payload) -> None:
        self._sio.emit(event, payload, to=room, namespace=self.namespace)

    def join(self, connection: str, room: str) -> None:
        self._sio.server.enter_room(connection, room, namespace=self.namespace)

    def leave(self, connection: str, room: str) -> None:
        self._sio.server.leave_room(connection, room, namespace=self.namespace)

    def close_room(self, room: str) -> None:
        self._sio.close_room(room, namespace=self.namespace)


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _dispatch(event: str, data=None) -> None:
    current_app.extensions['chessroom'].submit(event, _get_sid(), data)


def handle_connect(*args):
    _dispatch('connect')


def handle_disconnect(*args):
    _dispatch('disconnect')


def handle_join_game(data):
    _dispatch('joinGame', data)


def handle_leave_game(data=None):
    _dispatch('leaveGame', data)


def handle_move(data):
    _dispatch('move', data)


def handle_chat_message(data):
    _dispatch('chatMessage', data)


def handle_reconnect(data):
    _dispatch('reconnect', data)


def handle_ping(data=None):
    _dispatch('ping', data)


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers on ``namespace``.

    ``makeMove`` and ``sendChat`` are accepted as aliases used by older
    clients.
    """
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('joinGame', handle_join_game, namespace=namespace)
    socketio.on_event('leaveGame', handle_leave_game, namespace=namespace)
    socketio.on_event('move', handle_move, namespace=namespace)
    socketio.on_event('makeMove', handle_move, namespace=namespace)
    socketio.on_event('chatMessage', handle_chat_message, namespace=namespace)
    socketio.on_event('sendChat', handle_chat_message, namespace=namespace)
    socketio.on_event('reconnect', handle_reconnect, namespace=namespace)
    socketio.on_event('ping', handle_ping, namespace=namespace)
