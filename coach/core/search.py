import logging
import time
import chess
from typing import List, Optional, Tuple

from coach.core.evaluator import Evaluator
from coach.core.utils import MATE_SCORE, format_score, is_mate_score

logger = logging.getLogger(__name__)

INF = 1000000


class SearchEngine:
    """Fixed-depth minimax with alpha-beta pruning.

    White maximizes and Black minimizes, whoever asked. Each call copies the
    caller's board once and then walks the tree with push/pop on that copy,
    so the caller's board is never touched and no node allocates a board.
    """

    def __init__(self, evaluator: Optional[Evaluator] = None, depth: int = 3):
        self.evaluator = evaluator or Evaluator()
        self.max_depth = depth
        self.nodes = 0

    def search(self, board: chess.Board, depth: Optional[int] = None) -> int:
        """White-positive minimax value of ``board`` searched ``depth`` plies deep."""
        depth = self.max_depth if depth is None else depth
        self.nodes = 0
        work = board.copy()
        return self._minimax(work, depth, -INF, INF, 0)

    def rank_moves(self, board: chess.Board, depth: Optional[int] = None,
                   moves: Optional[List[chess.Move]] = None) -> Tuple[List[chess.Move], int]:
        """Score every root move and return all moves tied for best, plus the score.

        Each root move is searched at ``depth - 1`` after it is played. The
        window is narrowed to one centipawn past the best score so far: a
        fail-soft search then returns an exact value for anything that ties or
        beats it, while worse siblings still prune.
        """
        depth = self.max_depth if depth is None else depth
        self.nodes = 0
        start = time.monotonic()
        work = board.copy()
        maximizing = work.turn == chess.WHITE
        candidates = self._order_moves(work, moves if moves is not None else list(work.legal_moves))

        best_score = -INF if maximizing else INF
        best_moves: List[chess.Move] = []
        for move in candidates:
            work.push(move)
            if maximizing:
                score = self._minimax(work, max(depth - 1, 0), best_score - 1, INF, 1)
            else:
                score = self._minimax(work, max(depth - 1, 0), -INF, best_score + 1, 1)
            work.pop()

            if score == best_score:
                best_moves.append(move)
            elif (score > best_score) if maximizing else (score < best_score):
                best_score = score
                best_moves = [move]

        elapsed = time.monotonic() - start
        logger.debug(
            "depth %d score %s nodes %d time %.3fs best %s",
            depth, format_score(best_score), self.nodes, elapsed,
            " ".join(m.uci() for m in best_moves),
        )
        return best_moves, best_score

    def _minimax(self, board: chess.Board, depth: int, alpha: int, beta: int, ply: int) -> int:
        self.nodes += 1
        if depth <= 0 or board.is_game_over():
            score = self.evaluator.evaluate(board)
            # prefer the quicker mate
            if is_mate_score(score):
                score = score - ply if score > 0 else score + ply
            return score

        if board.turn == chess.WHITE:
            best = -INF
            for move in self._order_moves(board, board.legal_moves):
                board.push(move)
                score = self._minimax(board, depth - 1, alpha, beta, ply + 1)
                board.pop()
                if score > best:
                    best = score
                if best > alpha:
                    alpha = best
                if beta <= alpha:
                    break
            return best

        best = INF
        for move in self._order_moves(board, board.legal_moves):
            board.push(move)
            score = self._minimax(board, depth - 1, alpha, beta, ply + 1)
            board.pop()
            if score < best:
                best = score
            if best < beta:
                beta = best
            if beta <= alpha:
                break
        return best

    def _order_moves(self, board: chess.Board, moves) -> List[chess.Move]:
        """Captures first, most valuable victim / least valuable attacker.

        sorted() is stable, so quiet moves keep generation order.
        """
        return sorted(moves, key=lambda m: -self._mvv_lva(board, m))

    def _mvv_lva(self, board: chess.Board, move: chess.Move) -> int:
        if not board.is_capture(move):
            return 0
        attacker = board.piece_at(move.from_square)
        if board.is_en_passant(move):
            victim_type = chess.PAWN
        else:
            victim_type = board.piece_at(move.to_square).piece_type
        return 100 + victim_type * 10 - attacker.piece_type
