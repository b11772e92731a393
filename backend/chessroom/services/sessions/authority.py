from typing import Any, Mapping, Optional

from .errors import GameNotActive, IllegalMove, NotInGame, OutOfTurn
from .models import DRAW, IN_PROGRESS, Result, Session
from .oracle import AcceptedMove, Rejected


class MoveAuthority:
    """Arbitrates moves for a session.

    Turn ownership always comes from the oracle's reading of the position;
    the session never tracks whose move it is on its own. ``on_game_over``
    is called once the result is fixed and the move has been broadcast.
    """

    def __init__(self, oracle, clock, transport, on_game_over, logger) -> None:
        self._oracle = oracle
        self._clock = clock
        self._transport = transport
        self._on_game_over = on_game_over
        self._logger = logger

    def submit_move(self, session: Session, connection: str, request: Mapping[str, Any]) -> AcceptedMove:
        color = session.color_of(connection)
        if color is None:
            raise NotInGame()
        if session.status != IN_PROGRESS:
            raise GameNotActive()
        if color != self._oracle.current_turn(session.position):
            raise OutOfTurn()

        verdict = self._oracle.apply_move(session.position, request)
        if isinstance(verdict, Rejected):
            self._logger.info(f"[move-rejected] session={session.id} color={color} reason={verdict.reason}")
            raise IllegalMove()

        session.position = verdict.position
        session.touch()
        self._logger.info(f"[move] session={session.id} color={color} san={verdict.san}")

        result = self.outcome(session.position, color)
        if result is not None:
            session.finish(result.winner, result.reason)
            self._clock.stop(session.id)

        self._transport.broadcast(session.room, 'moveExecuted', {
            'move': {
                'from': request.get('from'),
                'to': request.get('to'),
                'promotion': request.get('promotion'),
                'san': verdict.san,
                'uci': verdict.uci,
            },
            'gameState': session.to_dict(self._oracle),
        })
        if result is not None:
            self._on_game_over(session)
        return verdict

    def outcome(self, position, mover: str) -> Optional[Result]:
        """Result implied by ``position`` right after ``mover`` played."""
        if not self._oracle.is_game_over(position):
            return None
        if self._oracle.is_checkmate(position):
            return Result(mover, 'checkmate')
        if self._oracle.is_stalemate(position):
            return Result(DRAW, 'stalemate')
        if self._oracle.is_threefold_repetition(position):
            return Result(DRAW, 'threefold_repetition')
        if self._oracle.is_insufficient_material(position):
            return Result(DRAW, 'insufficient_material')
        return Result(DRAW, 'draw')
