# coach/analyzer.py
import logging
from dataclasses import dataclass, field, asdict
from typing import List, Optional, Sequence

import chess

from coach.config import CONFIG
from coach.core.board import parse_move
from coach.errors import EvaluationServiceError
from coach.providers import EvaluationProvider, legal_uci

logger = logging.getLogger(__name__)


@dataclass
class MistakeRecord:
    ply_index: int  # index into the move list
    move_number: int  # full-move number as printed in a score sheet
    notation: str  # the move as it was given
    evaluation: int  # centipawns after the move, White-positive
    loss: int  # absolute swing in centipawns
    better_move: Optional[str] = None  # SAN, when the provider knew one

    def to_dict(self):
        return asdict(self)


@dataclass
class AnalysisReport:
    mistakes: List[MistakeRecord] = field(default_factory=list)
    moves_analyzed: int = 0
    complete: bool = True


class GameAnalyzer:
    """Replays a finished game and flags the human's large evaluation swings.

    Every human move is scored before and after through an evaluation
    provider. A swing larger than the threshold becomes a MistakeRecord. If
    the provider fails partway, the mistakes found so far are returned with
    ``complete=False`` instead of being thrown away.
    """

    def __init__(self, provider: EvaluationProvider, threshold_cp: Optional[int] = None):
        self.provider = provider
        self.threshold_cp = CONFIG.analyzer.mistake_threshold_cp if threshold_cp is None else threshold_cp

    @staticmethod
    def _is_human_move(ply_index: int, human_color: chess.Color) -> bool:
        # White plays the even plies of a game started from the initial position
        return (ply_index % 2 == 0) == (human_color == chess.WHITE)

    async def analyze_game(self, moves: Sequence[str], human_color: chess.Color) -> AnalysisReport:
        """
        Analyze a list of moves (SAN or UCI strings) from the initial position.

        Raises NotationError for a move that does not parse; that is fatal for
        the call. Provider failures end the pass early with a partial report.
        """
        # Parse everything up front so bad notation fails before any network call.
        board = chess.Board()
        parsed = []
        for text in moves:
            move = parse_move(board, text)
            parsed.append(move)
            board.push(move)

        board = chess.Board()
        report = AnalysisReport()

        for i, (text, move) in enumerate(zip(moves, parsed)):
            if not self._is_human_move(i, human_color):
                board.push(move)
                continue

            try:
                before = await self.provider.evaluate(board.fen())
                played_san = board.san(move)
                better = legal_uci(board, before.best_move)
                better_san = board.san(better) if better is not None and better != move else None
                board.push(move)
                after = await self.provider.evaluate(board.fen())
            except EvaluationServiceError as e:
                logger.warning("Analysis stopped at ply %d (%s): %s", i, text, e)
                report.complete = False
                return report

            report.moves_analyzed += 1
            if before.score is None or after.score is None:
                logger.info("No score around ply %d (%s), skipped", i, played_san)
                continue

            loss = abs(after.score - before.score)
            if loss > self.threshold_cp:
                report.mistakes.append(MistakeRecord(
                    ply_index=i,
                    move_number=i // 2 + 1,
                    notation=text,
                    evaluation=after.score,
                    loss=loss,
                    better_move=better_san,
                ))

        logger.info("%d mistake(s) in %d human move(s)", len(report.mistakes), report.moves_analyzed)
        return report
