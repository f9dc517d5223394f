"""FastAPI REST interface for the training engine."""

from typing import List, Optional

import chess
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from coach.config import CONFIG
from coach.core.board import board_from_fen, parse_color
from coach.errors import EngineBusyError, IllegalMoveError, NoLegalMovesError, NotationError
from coach.main import Engine

app = FastAPI(title=CONFIG.ui.engine_name, version="1.0.0")

engine = Engine()


class SelectRequest(BaseModel):
    fen: str
    difficulty: str = "intermediate"
    legal_moves: Optional[List[str]] = None  # UCI


class ThreatRequest(BaseModel):
    fen: str
    defending_color: str


class AnalyzeRequest(BaseModel):
    moves: List[str]
    human_color: str = "white"


def _board(fen: str) -> chess.Board:
    try:
        return board_from_fen(fen)
    except NotationError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _color(text: str) -> chess.Color:
    try:
        return parse_color(text)
    except NotationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/health")
def health():
    return {"status": "ok", "busy": engine.selector.busy, "provider": CONFIG.provider.kind}


@app.post("/select")
def select_move(req: SelectRequest):
    board = _board(req.fen)
    try:
        legal = [chess.Move.from_uci(m) for m in req.legal_moves] if req.legal_moves is not None else None
        move = engine.select_move(board, req.difficulty, legal)
    except (IllegalMoveError, NoLegalMovesError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValueError as e:
        # bad UCI text or unknown difficulty
        raise HTTPException(status_code=400, detail=str(e))
    except EngineBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"move": move.uci(), "san": board.san(move), "fen": board.fen()}


@app.post("/threats")
def threats(req: ThreatRequest):
    board = _board(req.fen)
    records = engine.detect_threats(board, _color(req.defending_color))
    return {"threats": [r.to_dict() for r in records]}


@app.post("/analyze")
async def analyze(req: AnalyzeRequest):
    color = _color(req.human_color)
    try:
        report = await engine.analyze_game(req.moves, color)
    except NotationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "mistakes": [m.to_dict() for m in report.mistakes],
        "moves_analyzed": report.moves_analyzed,
        "complete": report.complete,
    }
