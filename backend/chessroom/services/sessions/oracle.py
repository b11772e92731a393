"""Move legality oracle backed by python-chess.

The session core never inspects a position itself: it asks the oracle whose
turn it is, hands it proposed moves and reads back the verdict.
"""

from typing import Any, Dict, Mapping, NamedTuple, Union

import chess

from .models import BLACK, WHITE


class AcceptedMove(NamedTuple):
    position: chess.Board
    san: str
    uci: str


class Rejected(NamedTuple):
    reason: str


Verdict = Union[AcceptedMove, Rejected]

_PROMOTIONS = {'q': chess.QUEEN, 'r': chess.ROOK, 'b': chess.BISHOP, 'n': chess.KNIGHT}


class ChessOracle:

    def new_position(self) -> chess.Board:
        return chess.Board()

    def current_turn(self, position: chess.Board) -> str:
        return WHITE if position.turn == chess.WHITE else BLACK

    def apply_move(self, position: chess.Board, request: Mapping[str, Any]) -> Verdict:
        """Validate ``{from, to, promotion?}`` against ``position``.

        ``position`` is never mutated; an accepted move carries a new board.
        A pawn reaching the last rank without an explicit promotion becomes
        a queen. A promotion piece sent with any other move is ignored.
        """
        try:
            from_square = chess.parse_square(str(request['from']).lower())
            to_square = chess.parse_square(str(request['to']).lower())
        except (KeyError, TypeError, ValueError):
            return Rejected('malformed move')

        piece_type = chess.QUEEN
        promotion = request.get('promotion')
        if promotion:
            piece_type = _PROMOTIONS.get(str(promotion).lower())
            if piece_type is None:
                return Rejected('malformed promotion')

        move = chess.Move(from_square, to_square)
        if not position.is_legal(move):
            promoted = chess.Move(from_square, to_square, promotion=piece_type)
            if position.is_legal(promoted):
                move = promoted

        if not position.is_legal(move):
            return Rejected('illegal')

        san = position.san(move)
        new_position = position.copy()
        new_position.push(move)
        return AcceptedMove(new_position, san, move.uci())

    def is_game_over(self, position: chess.Board) -> bool:
        # Repetition and the fifty-move rule end the game once reached, without
        # waiting for a claim
        return (
            position.is_game_over()
            or position.is_repetition(3)
            or position.halfmove_clock >= 100
        )

    def is_checkmate(self, position: chess.Board) -> bool:
        return position.is_checkmate()

    def is_stalemate(self, position: chess.Board) -> bool:
        return position.is_stalemate()

    def is_threefold_repetition(self, position: chess.Board) -> bool:
        return position.is_repetition(3)

    def is_insufficient_material(self, position: chess.Board) -> bool:
        return position.is_insufficient_material()

    def describe(self, position: chess.Board) -> Dict[str, Any]:
        return {
            'fen': position.fen(),
            'turn': self.current_turn(position),
            'in_check': position.is_check(),
        }
