"""Difficulty-tiered move selection.

Novice is mostly random, intermediate searches shallowly but still blunders
on purpose now and then, advanced never blunders and grabs a mate-in-one
before spending time on a search. Ties at the best score are broken at
random so the engine does not replay the same game.
"""

import asyncio
import enum
import logging
import random
import threading
from typing import List, Optional, Sequence

import chess

from coach.config import CONFIG, Config, TierConfig
from coach.core.search import SearchEngine
from coach.errors import (
    EngineBusyError,
    EvaluationServiceError,
    IllegalMoveError,
    NoLegalMovesError,
)
from coach.providers import EvaluationProvider, legal_uci

logger = logging.getLogger(__name__)


class Difficulty(enum.Enum):
    NOVICE = "novice"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    @classmethod
    def parse(cls, value) -> "Difficulty":
        if isinstance(value, Difficulty):
            return value
        # the UI historically sent easy/medium/hard
        aliases = {"easy": "novice", "medium": "intermediate", "hard": "advanced"}
        text = str(value).strip().lower()
        return cls(aliases.get(text, text))


class MoveSelector:
    def __init__(self, search_engine: SearchEngine, cfg: Optional[Config] = None,
                 rng: Optional[random.Random] = None):
        self.search_engine = search_engine
        self.cfg = cfg or CONFIG
        # seed a Random for reproducible play in tests
        self.rng = rng or random.Random()
        self._lock = threading.Lock()

    def tier(self, difficulty: Difficulty) -> TierConfig:
        return getattr(self.cfg.difficulty, difficulty.value)

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def select_move(self, board: chess.Board, difficulty, legal_moves: Optional[Sequence[chess.Move]] = None) -> chess.Move:
        """Pick one legal move for the side to move at the given difficulty.

        Raises NoLegalMovesError on a finished game, IllegalMoveError if
        ``legal_moves`` holds a move the board does not allow, and
        EngineBusyError if another selection is still running.
        """
        difficulty = Difficulty.parse(difficulty)
        candidates = self._candidates(board, legal_moves)
        if not self._lock.acquire(blocking=False):
            raise EngineBusyError("A move is already being computed")
        try:
            move = self._select(board, difficulty, candidates)
        finally:
            self._lock.release()
        logger.info("%s plays %s", difficulty.value, board.san(move))
        return move

    async def select_move_async(self, board: chess.Board, difficulty,
                                provider: Optional[EvaluationProvider] = None,
                                timeout_s: Optional[float] = None) -> chess.Move:
        """Like select_move, but tiers marked ``delegate`` ask ``provider`` first.

        The remote call is bounded by ``timeout_s``. Any failure there falls
        back to the capture-preferring random choice rather than blocking.
        """
        difficulty = Difficulty.parse(difficulty)
        tier = self.tier(difficulty)
        if provider is None or not tier.delegate:
            return self.select_move(board, difficulty)

        candidates = self._candidates(board, None)
        if not self._lock.acquire(blocking=False):
            raise EngineBusyError("A move is already being computed")
        try:
            snapshot = board.copy(stack=False)
            timeout_s = self.cfg.provider.timeout_s if timeout_s is None else timeout_s
            try:
                result = await asyncio.wait_for(provider.evaluate(snapshot.fen()), timeout_s)
                move = legal_uci(snapshot, result.best_move)
                if move is None:
                    raise EvaluationServiceError(f"provider gave no usable move: {result.best_move!r}")
            except (EvaluationServiceError, asyncio.TimeoutError) as e:
                logger.warning("Remote move lookup failed, falling back to heuristic: %s", e)
                move = self._capture_preferring(snapshot, candidates)
        finally:
            self._lock.release()
        logger.info("%s plays %s", difficulty.value, board.san(move))
        return move

    def _candidates(self, board: chess.Board, legal_moves) -> List[chess.Move]:
        if board.is_game_over():
            raise NoLegalMovesError(f"Game is already over: {board.fen()}")
        if legal_moves is None:
            return list(board.legal_moves)
        moves = list(legal_moves)
        for move in moves:
            if move not in board.legal_moves:
                raise IllegalMoveError(f"{move.uci()} is not legal in {board.fen()}")
        if not moves:
            raise NoLegalMovesError("Empty candidate move list")
        return moves

    def _select(self, board: chess.Board, difficulty: Difficulty, moves: List[chess.Move]) -> chess.Move:
        tier = self.tier(difficulty)

        if difficulty == Difficulty.NOVICE:
            if self.rng.random() < tier.randomness:
                return self.rng.choice(moves)
            return self._capture_preferring(board, moves)

        if tier.mate_scan:
            mates = self._mates_in_one(board, moves)
            if mates:
                return self.rng.choice(mates)

        if self.rng.random() < tier.randomness:
            logger.debug("blunder injection at %s", difficulty.value)
            return self.rng.choice(moves)

        depth = min(tier.depth, self.cfg.search.max_depth)
        best_moves, score = self.search_engine.rank_moves(board, depth, moves)
        logger.debug("%d move(s) tied at %d", len(best_moves), score)
        return self.rng.choice(best_moves)

    def _capture_preferring(self, board: chess.Board, moves: List[chess.Move]) -> chess.Move:
        captures = [m for m in moves if board.is_capture(m)]
        return self.rng.choice(captures or moves)

    @staticmethod
    def _mates_in_one(board: chess.Board, moves: List[chess.Move]) -> List[chess.Move]:
        work = board.copy(stack=False)
        mates = []
        for move in moves:
            work.push(move)
            if work.is_checkmate():
                mates.append(move)
            work.pop()
        return mates
