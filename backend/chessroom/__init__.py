from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from .config import Config

socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS', [])
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from chessroom.routes import main
    flask_app.register_blueprint(main)

    from chessroom.api.sessions import sessions
    flask_app.register_blueprint(sessions, url_prefix='/api/sessions')

    # Session engine: one event queue feeding one controller. In TESTING the
    # queue drains inline and timers only fire when a test advances them.
    from chessroom.services.sessions import (BackgroundScheduler, EventQueue,
                                             ManualScheduler, SessionController)
    from chessroom.socketio_events import SocketIOTransport, register_socketio_handlers

    testing = flask_app.config.get('TESTING', False)
    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/ws')
    events = EventQueue(socketio, flask_app.logger, inline=testing)
    scheduler = ManualScheduler(events) if testing else BackgroundScheduler(socketio, events)
    controller = SessionController(
        flask_app.config, SocketIOTransport(socketio, namespace), scheduler, events, flask_app.logger
    )
    flask_app.extensions['chessroom'] = controller

    register_socketio_handlers(namespace)

    if not testing:
        controller.start_status_log(int(flask_app.config.get('STATUS_LOG_INTERVAL_SEC', 0)))

    return flask_app
