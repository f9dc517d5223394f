"""One-ply attack sets for training-mode warnings.

Not a legality check: the question answered is "which enemy pieces could take
one of my pieces if it were their move right now". python-chess only
generates moves for the side to move, so the scan runs on a copy with the
turn handed to the attacker and en passant cleared. Everything is recomputed
from scratch on each call.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Set

import chess


@dataclass(frozen=True)
class ThreatRecord:
    square: chess.Square
    piece_type: chess.PieceType
    color: chess.Color
    targets: FrozenSet[chess.Square]

    def to_dict(self) -> dict:
        return {
            "square": chess.square_name(self.square),
            "piece": chess.piece_symbol(self.piece_type),
            "color": "white" if self.color == chess.WHITE else "black",
            "threatens": sorted(chess.square_name(sq) for sq in self.targets),
        }


def detect_threats(board: chess.Board, defending_color: chess.Color) -> List[ThreatRecord]:
    attacker = not defending_color
    defended = board.occupied_co[defending_color]
    if not defended:
        return []

    hypo = board.copy(stack=False)
    hypo.turn = attacker
    hypo.ep_square = None

    records = []
    for sq in chess.scan_forward(board.occupied_co[attacker]):
        targets = frozenset(
            move.to_square
            for move in hypo.generate_legal_moves(from_mask=chess.BB_SQUARES[sq], to_mask=defended)
        )
        if targets:
            piece = board.piece_at(sq)
            records.append(ThreatRecord(sq, piece.piece_type, piece.color, targets))
    return records


def threatened_squares(records: Iterable[ThreatRecord]) -> Set[chess.Square]:
    squares: Set[chess.Square] = set()
    for record in records:
        squares |= record.targets
    return squares
