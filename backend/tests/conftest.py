import logging
import os
import sys
from collections import defaultdict

import pytest

# Ensure the backend root (containing the `chessroom` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from chessroom import create_app, socketio
from chessroom.services.sessions import EventQueue, ManualScheduler, SessionController


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    LOG_LEVEL = 'DEBUG'
    CORS_ORIGINS = []
    SOCKETIO_NAMESPACE = '/ws'
    INITIAL_CLOCK_SECONDS = 600
    CLOCK_TICK_MS = 1000
    CHAT_MESSAGE_LIMIT = 200
    CHAT_HISTORY_LIMIT = 50
    RECONNECT_GRACE_MS = 30000
    FINISHED_RETENTION_SEC = 30
    STATUS_LOG_INTERVAL_SEC = 0


def config_dict(**overrides):
    cfg = {k: getattr(TestConfig, k) for k in dir(TestConfig) if k.isupper()}
    cfg.update(overrides)
    return cfg


class RecordingTransport:
    """In-memory transport that tracks room membership and per-connection inboxes."""

    def __init__(self):
        self.rooms = defaultdict(set)
        self.inbox = defaultdict(list)
        self.broadcasts = []
        self.closed_rooms = []

    def send(self, connection, event, payload):
        self.inbox[connection].append((event, payload))

    def broadcast(self, room, event, payload):
        self.broadcasts.append((room, event, payload))
        for connection in sorted(self.rooms[room]):
            self.inbox[connection].append((event, payload))

    def join(self, connection, room):
        self.rooms[room].add(connection)

    def leave(self, connection, room):
        self.rooms[room].discard(connection)

    def close_room(self, room):
        self.closed_rooms.append(room)
        self.rooms.pop(room, None)

    def events(self, connection, name=None):
        return [(e, p) for e, p in self.inbox[connection] if name is None or e == name]

    def names(self, connection):
        return [e for e, _ in self.inbox[connection]]

    def last(self, connection, name):
        matching = self.events(connection, name)
        assert matching, f"{connection} never received {name}"
        return matching[-1][1]

    def clear(self):
        self.inbox.clear()
        self.broadcasts.clear()


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def make_controller(transport):
    def _make(**overrides):
        events = EventQueue(logger=logging.getLogger('chessroom.tests'), inline=True)
        scheduler = ManualScheduler(events)
        return SessionController(
            config_dict(**overrides), transport, scheduler, events, logging.getLogger('chessroom.tests')
        )
    return _make


@pytest.fixture()
def controller(make_controller):
    return make_controller()


@pytest.fixture()
def started(controller, transport):
    """A session ABC1 with 'w' as white and 'b' as black, clock running."""
    controller.handle('joinGame', 'w', {'code': 'abc1'})
    controller.handle('joinGame', 'b', {'code': 'ABC1'})
    transport.clear()
    return controller.registry.get('ABC1')


def play(controller, connection, uci):
    payload = {'from': uci[:2], 'to': uci[2:4]}
    if len(uci) > 4:
        payload['promotion'] = uci[4]
    controller.handle('move', connection, payload)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
