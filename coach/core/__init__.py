"""Core engine components: board adapter, evaluator, search, and threat detection."""

from .board import ChessBoard
from .evaluator import Evaluator
from .search import SearchEngine
from .threats import ThreatRecord, detect_threats
