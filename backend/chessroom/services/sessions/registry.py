from typing import Callable, Dict, Iterator, List, Optional

from .chat import ChatBuffer
from .errors import GameFull
from .models import BLACK, WAITING, WHITE, Session


class SessionRegistry:
    """Owns every live session, keyed by normalized room code."""

    def __init__(self, oracle, initial_seconds: int = 600, chat_capacity: int = 50,
                 chat_message_limit: int = 200, logger=None) -> None:
        self._oracle = oracle
        self._initial_seconds = initial_seconds
        self._chat_capacity = chat_capacity
        self._chat_message_limit = chat_message_limit
        self._logger = logger
        self._sessions: Dict[str, Session] = {}
        self._remove_hooks: List[Callable[[str], None]] = []

    @staticmethod
    def normalize(session_id: str) -> str:
        return str(session_id).strip().upper()

    def on_remove(self, hook: Callable[[str], None]) -> None:
        """Register a callback releasing per-session resources (timers)."""
        self._remove_hooks.append(hook)

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(self.normalize(session_id))

    def get_or_create(self, session_id: str) -> Session:
        code = self.normalize(session_id)
        session = self._sessions.get(code)
        if session is None:
            session = Session(
                code,
                self._oracle.new_position(),
                self._initial_seconds,
                ChatBuffer(self._chat_capacity, self._chat_message_limit),
            )
            self._sessions[code] = session
            if self._logger:
                self._logger.info(f"[session-create] session={code}")
        return session

    def ensure_seat(self, session_id: str) -> None:
        """Raise GameFull unless a join on ``session_id`` would get a seat.

        An unknown code passes: joining it creates the session.
        """
        session = self.get(session_id)
        if session is not None and (session.status != WAITING or session.is_full()):
            raise GameFull()

    def assign_color(self, session: Session, connection: str) -> str:
        """Seat ``connection``: white first, then black."""
        if session.status != WAITING:
            raise GameFull()
        if session.white is None:
            color = WHITE
        elif session.black is None:
            color = BLACK
        else:
            raise GameFull()
        session.bind(color, connection)
        return color

    def remove(self, session_id: str) -> None:
        code = self.normalize(session_id)
        for hook in self._remove_hooks:
            hook(code)
        if self._sessions.pop(code, None) is not None and self._logger:
            self._logger.info(f"[session-remove] session={code}")

    def __contains__(self, session_id: str) -> bool:
        return self.normalize(session_id) in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._sessions))
