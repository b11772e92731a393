import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Comma separated list of origins allowed for HTTP and Socket.IO
    CORS_ORIGINS = [o.strip() for o in os.environ.get(
        'CORS_ORIGINS',
        'http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173',
    ).split(',') if o.strip()]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    # Per-side clock (seconds) and tick interval (ms)
    INITIAL_CLOCK_SECONDS = int(os.environ.get('INITIAL_CLOCK_SECONDS', '600'))
    CLOCK_TICK_MS = int(os.environ.get('CLOCK_TICK_MS', '1000'))
    # Chat limits
    CHAT_MESSAGE_LIMIT = int(os.environ.get('CHAT_MESSAGE_LIMIT', '200'))
    CHAT_HISTORY_LIMIT = int(os.environ.get('CHAT_HISTORY_LIMIT', '50'))
    # Window for a disconnected player to come back before forfeiting (ms)
    RECONNECT_GRACE_MS = int(os.environ.get('RECONNECT_GRACE_MS', '30000'))
    # How long a finished session is kept around before cleanup (seconds)
    FINISHED_RETENTION_SEC = int(os.environ.get('FINISHED_RETENTION_SEC', '30'))
    # Heartbeat interval for the status log line (sec). 0 disables.
    STATUS_LOG_INTERVAL_SEC = int(os.environ.get('STATUS_LOG_INTERVAL_SEC', '60'))
