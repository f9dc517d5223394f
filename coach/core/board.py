"""Board wrapper over python-chess providing move history and strict input checks."""

import re
from typing import List, Optional

import chess

from coach.errors import IllegalMoveError, NotationError


def board_from_fen(fen: str) -> chess.Board:
    """Build a board from FEN, refusing anything python-chess would not round-trip."""
    try:
        board = chess.Board(fen)
    except ValueError as e:
        raise NotationError(f"Invalid FEN {fen!r}: {e}") from e
    if not board.is_valid():
        raise NotationError(f"FEN {fen!r} is not a legal position: {board.status()!r}")
    return board


_UCI_RE = re.compile(r"^[a-h][1-8][a-h][1-8][qrbn]?$")


def parse_move(board: chess.Board, text: str) -> chess.Move:
    """Parse SAN or UCI text into a legal move for ``board``.

    Null moves are refused: they would silently hand the turn over.
    """
    text = text.strip()
    try:
        if _UCI_RE.match(text):
            move = chess.Move.from_uci(text)
            if move not in board.legal_moves:
                raise ValueError("not legal here")
        else:
            move = board.parse_san(text)
    except ValueError as e:
        raise NotationError(f"Cannot read move {text!r} in {board.fen()}: {e}") from e
    if not move:
        raise NotationError(f"Null move {text!r} is not accepted")
    return move


def parse_color(text: str) -> chess.Color:
    value = text.strip().lower()
    if value in ("w", "white"):
        return chess.WHITE
    if value in ("b", "black"):
        return chess.BLACK
    raise NotationError(f"Unknown color {text!r}")


class ChessBoard:
    def __init__(self, fen: str = None):
        """Initialize from FEN or the standard starting position."""
        self.board = board_from_fen(fen) if fen else chess.Board()
        self.move_history: List[str] = []

    def set_fen(self, fen: str):
        """Set board state from a FEN string."""
        self.board = board_from_fen(fen)
        self.move_history.clear()

    def get_fen(self) -> str:
        """Return the current FEN."""
        return self.board.fen()

    def make_move(self, move_str: str) -> chess.Move:
        """Push a SAN or UCI move (e.g. 'e4' or 'e2e4').

        Raises IllegalMoveError instead of coercing bad input.
        """
        try:
            move = parse_move(self.board, move_str)
        except NotationError as e:
            raise IllegalMoveError(str(e)) from e
        self.move_history.append(self.board.san(move))
        self.board.push(move)
        return move

    def push(self, move: chess.Move):
        """Push an already built move, checking it first."""
        if move not in self.board.legal_moves:
            raise IllegalMoveError(f"Illegal move {move.uci()} in {self.board.fen()}")
        self.move_history.append(self.board.san(move))
        self.board.push(move)

    def undo_move(self):
        """Pop the last move."""
        if self.move_history:
            self.board.pop()
            self.move_history.pop()

    def get_legal_moves(self, square: Optional[chess.Square] = None) -> List[str]:
        """Return legal moves as UCI strings, optionally only those leaving ``square``."""
        if square is None:
            moves = self.board.legal_moves
        else:
            moves = self.board.generate_legal_moves(from_mask=chess.BB_SQUARES[square])
        return [m.uci() for m in moves]

    def is_game_over(self):
        """Check if the game has ended."""
        return self.board.is_game_over()

    def print_board(self, output=print):
        """Print ASCII representation."""
        output(str(self.board))
