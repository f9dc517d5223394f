"""Finished-game summaries and the one-way sink they are handed to."""

import logging
import os
from typing import List, Optional

import chess
import chess.pgn
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class GameSummary(BaseModel):
    user_id: str
    pgn: str
    moves: List[str]
    result: str  # "win", "loss", "draw" or "unfinished", from the human's side
    difficulty: str
    human_color: str
    duration_s: int
    final_fen: str


def summarize_game(board: chess.Board, user_id: str, human_color: chess.Color,
                   difficulty: str, duration_s: int) -> GameSummary:
    """Build a summary from a board whose move stack holds the whole game."""
    outcome = board.outcome()
    if outcome is None or outcome.winner is None:
        result = "draw" if outcome is not None else "unfinished"
    else:
        result = "win" if outcome.winner == human_color else "loss"

    replay = board.root()
    sans = []
    for move in board.move_stack:
        sans.append(replay.san(move))
        replay.push(move)

    return GameSummary(
        user_id=user_id,
        pgn=str(chess.pgn.Game.from_board(board)),
        moves=sans,
        result=result,
        difficulty=difficulty,
        human_color="white" if human_color == chess.WHITE else "black",
        duration_s=duration_s,
        final_fen=board.fen(),
    )


class GameRecordSink:
    def save(self, summary: GameSummary):
        raise NotImplementedError


class JsonlGameRecordSink(GameRecordSink):
    """Appends one JSON line per finished game."""

    def __init__(self, path: str):
        self.path = path

    def save(self, summary: GameSummary):
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(summary.model_dump_json() + "\n")
        logger.info("Saved %s game for %s to %s", summary.result, summary.user_id, self.path)


def make_sink(path: Optional[str]) -> Optional[GameRecordSink]:
    return JsonlGameRecordSink(path) if path else None
