from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the chessroom game server!'})

@main.route('/status')
def status():
    stats = current_app.extensions['chessroom'].stats()
    return jsonify({
        'status': 'online',
        'games': stats['games'],
        'players': stats['players'],
        'timestamp': datetime.now(timezone.utc).isoformat(),
    })
