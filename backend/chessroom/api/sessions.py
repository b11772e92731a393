from flask import Blueprint, current_app, jsonify

sessions = Blueprint('sessions', __name__)


@sessions.route('/<string:game_code>/state', methods=['GET'])
def get_session_state(game_code):
    # Read-only snapshot; all mutation goes through the socket event queue
    payload = current_app.extensions['chessroom'].snapshot(game_code)
    if payload is None:
        return jsonify({'error': 'Game not found'}), 404
    payload['durations'] = {
        'reconnect_grace_sec': int(current_app.config.get('RECONNECT_GRACE_MS', 30000)) // 1000,
        'finished_retention_sec': int(current_app.config.get('FINISHED_RETENTION_SEC', 30)),
    }
    return jsonify(payload)
