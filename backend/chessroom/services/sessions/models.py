import time
from typing import Any, Dict, NamedTuple, Optional

from .chat import ChatBuffer

WHITE = 'white'
BLACK = 'black'
DRAW = 'draw'
COLORS = (WHITE, BLACK)

WAITING = 'waiting'
IN_PROGRESS = 'in_progress'
FINISHED = 'finished'


def opposite(color: str) -> str:
    return BLACK if color == WHITE else WHITE


def room_for(session_id: str) -> str:
    return f"game:{session_id}"


class ConnectionBinding(NamedTuple):
    """Which session (and which side of it) a live connection plays."""
    session_id: str
    color: str


class Result(NamedTuple):
    winner: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {'winner': self.winner, 'reason': self.reason}


class Session:
    """A single match, owned by the registry and looked up per event."""

    def __init__(self, session_id: str, position: Any, initial_seconds: int, chat: ChatBuffer) -> None:
        self.id = session_id
        self.status = WAITING
        self.white: Optional[str] = None
        self.black: Optional[str] = None
        self.position = position
        self.white_remaining = initial_seconds
        self.black_remaining = initial_seconds
        self.chat = chat
        self.result: Optional[Result] = None
        self.created_at = time.time()
        self.last_activity = self.created_at

    @property
    def room(self) -> str:
        return room_for(self.id)

    def binding(self, color: str) -> Optional[str]:
        return self.white if color == WHITE else self.black

    def color_of(self, connection: str) -> Optional[str]:
        if connection is None:
            return None
        if self.white == connection:
            return WHITE
        if self.black == connection:
            return BLACK
        return None

    def bind(self, color: str, connection: str) -> None:
        if color == WHITE:
            self.white = connection
        else:
            self.black = connection

    def unbind(self, color: str) -> None:
        self.bind(color, None)

    def connections(self):
        return [c for c in (self.white, self.black) if c is not None]

    def is_full(self) -> bool:
        return self.white is not None and self.black is not None

    def is_empty(self) -> bool:
        return self.white is None and self.black is None

    def remaining(self, color: str) -> int:
        return self.white_remaining if color == WHITE else self.black_remaining

    def decrement(self, color: str, amount: int = 1) -> int:
        """Take ``amount`` seconds off one side, floored at zero."""
        if color == WHITE:
            self.white_remaining = max(0, self.white_remaining - amount)
        else:
            self.black_remaining = max(0, self.black_remaining - amount)
        return self.remaining(color)

    def start(self) -> None:
        self.status = IN_PROGRESS
        self.touch()

    def finish(self, winner: str, reason: str) -> bool:
        """Fix the result. Returns False if the session already has one."""
        if self.result is not None:
            return False
        self.result = Result(winner, reason)
        self.status = FINISHED
        return True

    def touch(self) -> None:
        self.last_activity = time.time()

    def to_dict(self, oracle) -> Dict[str, Any]:
        """Full client-facing snapshot (the ``gameState`` payload)."""
        described = oracle.describe(self.position)
        return {
            'code': self.id,
            'status': self.status,
            'fen': described['fen'],
            'turn': described['turn'],
            'inCheck': described['in_check'],
            'whiteRemaining': self.white_remaining,
            'blackRemaining': self.black_remaining,
            'chat': self.chat.to_list(),
            'result': self.result.to_dict() if self.result else None,
            'players': {WHITE: self.white is not None, BLACK: self.black is not None},
            'lastActivity': int(self.last_activity * 1000),
        }
