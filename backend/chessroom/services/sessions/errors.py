"""Error taxonomy for session requests.

Every error here is recoverable: it is reported to the connection that sent
the request and leaves the session untouched.
"""

from typing import Any, Dict, Optional


class SessionError(Exception):
    code = 'ERROR'
    # Set on errors that reject a move; reported as ``moveRejected``
    reason: Optional[str] = None
    default_message = 'Request failed'

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self) -> Dict[str, Any]:
        return {'code': self.code, 'message': self.message}


class InvalidRequest(SessionError):
    code = 'INVALID_REQUEST'
    default_message = 'Malformed request'


class NotInGame(SessionError):
    code = 'NOT_IN_GAME'
    default_message = 'You are not in a game'


class GameNotActive(SessionError):
    code = 'GAME_NOT_ACTIVE'
    reason = 'game_not_active'
    default_message = 'Game is not in progress'


class OutOfTurn(SessionError):
    code = 'OUT_OF_TURN'
    reason = 'not_your_turn'
    default_message = 'It is not your turn'


class IllegalMove(SessionError):
    code = 'ILLEGAL_MOVE'
    reason = 'illegal'
    default_message = 'Illegal move'


class GameFull(SessionError):
    code = 'GAME_FULL'
    default_message = 'This game is already full'


class GameNotFound(SessionError):
    code = 'GAME_NOT_FOUND'
    default_message = 'Game not found'
