import time
from collections import deque
from typing import Any, Dict, List, NamedTuple, Optional

from .errors import InvalidRequest


class ChatEntry(NamedTuple):
    color: str
    text: str
    timestamp: int  # ms since epoch

    def to_dict(self) -> Dict[str, Any]:
        return {'color': self.color, 'message': self.text, 'timestamp': self.timestamp}


class ChatBuffer:
    """Bounded chat log for one session; the oldest entry is evicted first."""

    def __init__(self, capacity: int = 50, message_limit: int = 200) -> None:
        self.capacity = capacity
        self.message_limit = message_limit
        self._entries = deque(maxlen=capacity)

    def append(self, color: str, text: Any, timestamp: Optional[int] = None) -> ChatEntry:
        """Trim and cap ``text`` then append it.

        Raises InvalidRequest when the message is not a string or is empty
        once trimmed.
        """
        if not isinstance(text, str):
            raise InvalidRequest('Chat message must be a string')
        text = text.strip()[:self.message_limit]
        if not text:
            raise InvalidRequest('Chat message is empty')
        if timestamp is None:
            timestamp = int(time.time() * 1000)
        entry = ChatEntry(color, text, timestamp)
        self._entries.append(entry)
        return entry

    def to_list(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in list(self._entries)]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))
