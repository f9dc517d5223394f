import chess
from typing import Optional

from coach.config import CONFIG, EvalConfig
from coach.core.utils import MATE_SCORE

# (piece type, home squares) per color, used by the development term
_MINOR_HOMES = {
    chess.WHITE: ((chess.KNIGHT, (chess.B1, chess.G1)), (chess.BISHOP, (chess.C1, chess.F1))),
    chess.BLACK: ((chess.KNIGHT, (chess.B8, chess.G8)), (chess.BISHOP, (chess.C8, chess.F8))),
}


class Evaluator:
    """Static evaluation in centipawns, positive favors White.

    The score does not depend on who asks: White-positive everywhere, so the
    search maximizes for White and minimizes for Black.
    """

    def __init__(self, cfg: Optional[EvalConfig] = None):
        self.cfg = cfg or CONFIG.eval
        self._values = {
            chess.PIECE_TYPES[i]: self.cfg.piece_values[name]
            for i, name in enumerate(("PAWN", "KNIGHT", "BISHOP", "ROOK", "QUEEN", "KING"))
        }

    def evaluate(self, board: chess.Board) -> int:
        to_move_count = board.legal_moves.count()

        # Terminal positions
        if to_move_count == 0:
            if board.is_check():
                return -MATE_SCORE if board.turn == chess.WHITE else MATE_SCORE
            return 0
        if board.is_insufficient_material():
            return 0
        if board.is_seventyfive_moves() or board.is_fivefold_repetition():
            return 0

        score = self._material_and_squares(board)

        # Mobility: count the side not to move with the turn handed over.
        other_count = self._count_for_other_side(board)
        if board.turn == chess.WHITE:
            score += self.cfg.mobility_weight * (to_move_count - other_count)
        else:
            score += self.cfg.mobility_weight * (other_count - to_move_count)

        if board.ply() < self.cfg.opening_plies:
            score += self.cfg.development_bonus * (
                self._undeveloped(board, chess.BLACK) - self._undeveloped(board, chess.WHITE)
            )

        return score

    def _material_and_squares(self, board: chess.Board) -> int:
        score = 0
        for sq, piece in board.piece_map().items():
            value = self._values[piece.piece_type]
            # tables are laid out rank 8 first
            idx = chess.square_mirror(sq) if piece.color == chess.WHITE else sq
            if piece.piece_type == chess.PAWN:
                value += self.cfg.pst_pawn[idx]
            elif piece.piece_type == chess.KNIGHT:
                value += self.cfg.pst_knight[idx]
            score += value if piece.color == chess.WHITE else -value
        return score

    def _count_for_other_side(self, board: chess.Board) -> int:
        ep = board.ep_square
        board.turn = not board.turn
        board.ep_square = None
        try:
            return board.legal_moves.count()
        finally:
            board.turn = not board.turn
            board.ep_square = ep

    def _undeveloped(self, board: chess.Board, color: chess.Color) -> int:
        count = 0
        for piece_type, homes in _MINOR_HOMES[color]:
            for sq in homes:
                piece = board.piece_at(sq)
                if piece and piece.piece_type == piece_type and piece.color == color:
                    count += 1
        return count
