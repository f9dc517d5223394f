"""Exceptions raised by the coach engine."""


class CoachError(Exception):
    """Base class for every error the engine raises on purpose."""


class IllegalMoveError(CoachError, ValueError):
    """A move was supplied that is not legal in the given position."""


class NoLegalMovesError(CoachError):
    """A move was requested from a finished game."""


class NotationError(CoachError, ValueError):
    """FEN or move text could not be turned into exactly one position or move."""


class EvaluationServiceError(CoachError):
    """The remote evaluator timed out, failed, or answered with garbage."""


class EngineBusyError(CoachError):
    """Another move computation is already running on this selector."""
