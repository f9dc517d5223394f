import random
from typing import List, Optional, Sequence

import chess

from coach.analyzer import AnalysisReport, GameAnalyzer
from coach.config import CONFIG, Config
from coach.core.board import ChessBoard
from coach.core.evaluator import Evaluator
from coach.core.search import SearchEngine
from coach.core.threats import ThreatRecord, detect_threats
from coach.providers import EvaluationProvider, make_provider
from coach.records import GameSummary, make_sink, summarize_game
from coach.selector import MoveSelector


class Engine:
    """Everything one game session needs, wired from one Config.

    Separate sessions get separate Engine objects; nothing here is global.
    """

    def __init__(self, cfg: Optional[Config] = None, rng: Optional[random.Random] = None,
                 provider: Optional[EvaluationProvider] = None):
        self.cfg = cfg or CONFIG
        self.board = ChessBoard()
        self.evaluator = Evaluator(self.cfg.eval)
        self.search = SearchEngine(self.evaluator, depth=self.cfg.search.depth)
        self.selector = MoveSelector(self.search, self.cfg, rng=rng)
        self.provider = provider or make_provider(self.search, self.cfg)
        self.analyzer = GameAnalyzer(self.provider, self.cfg.analyzer.mistake_threshold_cp)
        self.sink = make_sink(self.cfg.ui.records_path)

    def select_move(self, board: chess.Board, difficulty,
                    legal_moves: Optional[Sequence[chess.Move]] = None) -> chess.Move:
        return self.selector.select_move(board, difficulty, legal_moves)

    async def select_move_async(self, board: chess.Board, difficulty) -> chess.Move:
        return await self.selector.select_move_async(board, difficulty, self.provider)

    def detect_threats(self, board: chess.Board, defending_color: chess.Color) -> List[ThreatRecord]:
        return detect_threats(board, defending_color)

    async def analyze_game(self, moves: Sequence[str], human_color: chess.Color) -> AnalysisReport:
        return await self.analyzer.analyze_game(moves, human_color)

    def get_best_move(self, difficulty="advanced"):
        """Pick a move for the session board and return it with the static eval."""
        move = self.select_move(self.board.board, difficulty)
        return move.uci(), self.evaluator.evaluate(self.board.board)

    def make_move(self, move_str: str):
        return self.board.make_move(move_str)

    def record_game(self, user_id: str, human_color: chess.Color, difficulty: str,
                    duration_s: int) -> Optional[GameSummary]:
        """Hand the finished session game to the configured sink, if any."""
        if self.sink is None:
            return None
        summary = summarize_game(self.board.board, user_id, human_color, difficulty, duration_s)
        self.sink.save(summary)
        return summary

    async def close(self):
        await self.provider.close()

    def print_board(self, output=print):
        self.board.print_board(output)
