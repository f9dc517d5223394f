"""Position evaluation providers used by the analyzer and the async selector.

Two implementations share one coroutine interface:

- LocalProvider runs the in-process search at a fixed depth. Always
  available; the default and the fallback.
- LichessCloudProvider asks the Lichess cloud-eval endpoint. Network bound,
  rate limited, and allowed to leave any field out. Every failure surfaces
  as EvaluationServiceError so callers have one thing to catch.

make_provider() picks one from configuration.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

import aiohttp
import chess
from pydantic import BaseModel, ValidationError

from coach.config import CONFIG, ProviderConfig
from coach.core.board import board_from_fen
from coach.core.search import SearchEngine
from coach.core.utils import MATE_SCORE
from coach.errors import EvaluationServiceError

logger = logging.getLogger(__name__)


@dataclass
class ProviderEvaluation:
    """What a provider knows about one position. Any field may be missing."""
    score: Optional[int] = None  # centipawns, White-positive, mate folded in
    mate: Optional[int] = None  # moves to mate, positive when White mates
    best_move: Optional[str] = None  # UCI
    depth: Optional[int] = None


def mate_to_score(mate: int) -> int:
    """Fold a 'mate in N moves' into the saturating White-positive sentinel."""
    plies = max(2 * abs(mate) - 1, 0)
    return MATE_SCORE - plies if mate > 0 else -(MATE_SCORE - plies)


class EvaluationProvider:
    async def evaluate(self, fen: str) -> ProviderEvaluation:
        raise NotImplementedError

    async def close(self):
        pass


class LocalProvider(EvaluationProvider):
    def __init__(self, search_engine: SearchEngine, depth: int = 2):
        self.search_engine = search_engine
        self.depth = depth

    async def evaluate(self, fen: str) -> ProviderEvaluation:
        board = board_from_fen(fen)
        if board.is_game_over():
            return ProviderEvaluation(score=self.search_engine.evaluator.evaluate(board), depth=0)
        best_moves, score = self.search_engine.rank_moves(board, self.depth)
        # analysis must be reproducible, so take the first of any tie
        return ProviderEvaluation(score=score, best_move=best_moves[0].uci(), depth=self.depth)


class CloudPv(BaseModel):
    moves: Optional[str] = None
    cp: Optional[int] = None
    mate: Optional[int] = None


class CloudEvalResponse(BaseModel):
    fen: Optional[str] = None
    depth: Optional[int] = None
    knodes: Optional[int] = None
    pvs: List[CloudPv] = []


def parse_cloud_eval(payload) -> ProviderEvaluation:
    try:
        data = CloudEvalResponse.model_validate(payload)
    except ValidationError as e:
        raise EvaluationServiceError(f"Malformed cloud-eval payload: {e}") from e

    result = ProviderEvaluation(depth=data.depth)
    if not data.pvs:
        return result
    pv = data.pvs[0]
    if pv.mate is not None:
        result.mate = pv.mate
        result.score = mate_to_score(pv.mate)
    elif pv.cp is not None:
        result.score = pv.cp
    if pv.moves:
        result.best_move = pv.moves.split()[0]
    return result


class LichessCloudProvider(EvaluationProvider):
    """Cloud-eval client.

    The service answers 404 for any position it has not cached, terminal
    positions included. That is a miss, not an outage: the position goes to
    ``fallback`` when one is given, otherwise an empty evaluation comes back.
    """

    def __init__(self, cfg: Optional[ProviderConfig] = None,
                 session: Optional[aiohttp.ClientSession] = None,
                 fallback: Optional[EvaluationProvider] = None):
        self.cfg = cfg or CONFIG.provider
        self.fallback = fallback
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.cfg.timeout_s),
                headers={"Accept": "application/json"},
            )
        return self._session

    async def evaluate(self, fen: str) -> ProviderEvaluation:
        session = await self._get_session()
        params = {"fen": fen, "multiPv": str(self.cfg.multi_pv)}
        try:
            async with session.get(self.cfg.base_url, params=params) as resp:
                cache_miss = resp.status == 404
                if not cache_miss and resp.status != 200:
                    raise EvaluationServiceError(f"cloud-eval returned HTTP {resp.status} for {fen}")
                payload = None if cache_miss else await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise EvaluationServiceError(f"cloud-eval request failed: {e!r}") from e

        if cache_miss:
            logger.debug("cloud-eval has no entry for %s", fen)
            if self.fallback is None:
                return ProviderEvaluation()
            return await self.fallback.evaluate(fen)

        result = parse_cloud_eval(payload)
        logger.debug("cloud-eval %s -> score=%s best=%s depth=%s",
                     fen, result.score, result.best_move, result.depth)
        return result

    async def close(self):
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None


def make_provider(search_engine: SearchEngine, cfg=None) -> EvaluationProvider:
    cfg = cfg or CONFIG
    kind = cfg.provider.kind.lower()
    local = LocalProvider(search_engine, depth=cfg.analyzer.depth)
    if kind == "local":
        return local
    if kind == "lichess":
        return LichessCloudProvider(cfg.provider, fallback=local)
    raise ValueError(f"Unknown provider kind {cfg.provider.kind!r}")


def legal_uci(board: chess.Board, uci: Optional[str]) -> Optional[chess.Move]:
    """Return the move if ``uci`` names a legal move on ``board``, else None."""
    if not uci:
        return None
    try:
        move = chess.Move.from_uci(uci)
    except ValueError:
        return None
    return move if move in board.legal_moves else None
