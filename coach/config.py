# coach/config.py
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Dict, List, Optional
import os
import tomllib

# Defaults (centipawns)
PIECE_VALUES = {
    "PAWN": 100,
    "KNIGHT": 320,
    "BISHOP": 330,
    "ROOK": 500,
    "QUEEN": 900,
    "KING": 20000,
}

# Square tables are written rank 8 first, the way they read on a diagram
# from White's side. Index with chess.square_mirror(sq) for White pieces.
PST_PAWN = [
     0,   0,   0,   0,   0,   0,   0,   0,
    50,  50,  50,  50,  50,  50,  50,  50,
    10,  10,  20,  30,  30,  20,  10,  10,
     5,   5,  10,  25,  25,  10,   5,   5,
     0,   0,   0,  20,  20,   0,   0,   0,
     5,  -5, -10,   0,   0, -10,  -5,   5,
     5,  10,  10, -20, -20,  10,  10,   5,
     0,   0,   0,   0,   0,   0,   0,   0,
]

PST_KNIGHT = [
    -50, -40, -30, -30, -30, -30, -40, -50,
    -40, -20,   0,   0,   0,   0, -20, -40,
    -30,   0,  10,  15,  15,  10,   0, -30,
    -30,   5,  15,  20,  20,  15,   5, -30,
    -30,   0,  15,  20,  20,  15,   0, -30,
    -30,   5,  10,  15,  15,  10,   5, -30,
    -40, -20,   0,   5,   5,   0, -20, -40,
    -50, -40, -30, -30, -30, -30, -40, -50,
]


@dataclass
class SearchConfig:
    depth: int = 3
    max_depth: int = 6  # hard cap regardless of tier


@dataclass
class EvalConfig:
    piece_values: Dict[str, int] = field(default_factory=lambda: PIECE_VALUES.copy())
    pst_pawn: List[int] = field(default_factory=lambda: list(PST_PAWN))
    pst_knight: List[int] = field(default_factory=lambda: list(PST_KNIGHT))
    mobility_weight: int = 5
    development_bonus: int = 10
    opening_plies: int = 10  # development term applies below this ply count


@dataclass
class TierConfig:
    depth: int = 1
    randomness: float = 0.0  # probability of a plain random move
    mate_scan: bool = False  # look for mate-in-one before searching
    delegate: bool = False  # ask the remote provider first (async path only)


@dataclass
class DifficultyConfig:
    # novice never searches, so its depth is not read
    novice: TierConfig = field(default_factory=lambda: TierConfig(depth=0, randomness=0.8))
    intermediate: TierConfig = field(default_factory=lambda: TierConfig(depth=3, randomness=0.3))
    # depth 5 costs several seconds per move in the middlegame (tens of
    # thousands of nodes); lower [search] max_depth to cap it for /select
    advanced: TierConfig = field(default_factory=lambda: TierConfig(depth=5, randomness=0.0, mate_scan=True))


@dataclass
class AnalyzerConfig:
    # swing above which a human move is reported, in centipawns
    mistake_threshold_cp: int = 150
    depth: int = 2  # local provider depth


@dataclass
class ProviderConfig:
    kind: str = "local"  # "local" or "lichess"
    base_url: str = "https://lichess.org/api/cloud-eval"
    timeout_s: float = 5.0
    multi_pv: int = 1


@dataclass
class UIConfig:
    engine_name: str = "Coach"
    api_port: int = 8000
    records_path: Optional[str] = None  # JSONL sink for finished games


@dataclass
class Config:
    search: SearchConfig = field(default_factory=SearchConfig)
    eval: EvalConfig = field(default_factory=EvalConfig)
    difficulty: DifficultyConfig = field(default_factory=DifficultyConfig)
    analyzer: AnalyzerConfig = field(default_factory=AnalyzerConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    log_level: str = "INFO"

    @staticmethod
    def load_from_toml(path: str = "config.toml") -> "Config":
        cfg = Config()
        if not os.path.exists(path):
            return cfg
        with open(path, "rb") as f:
            raw = tomllib.load(f)
        _merge(cfg, raw)
        return cfg


def _merge(target, raw: dict) -> None:
    """Copy known keys from a TOML table onto a dataclass, recursing into
    nested dataclasses. Unknown keys are ignored."""
    known = {f.name for f in fields(target)}
    for k, v in raw.items():
        if k not in known:
            continue
        current = getattr(target, k)
        if is_dataclass(current) and isinstance(v, dict):
            _merge(current, v)
        else:
            setattr(target, k, v)


# single globally importable config instance
CONFIG = Config.load_from_toml(os.environ.get("COACH_CONFIG_TOML", "config.toml"))
# allow env overrides for quick debugging
override_depth = os.environ.get("COACH_SEARCH_DEPTH")
if override_depth and override_depth.isdigit():
    CONFIG.search.depth = int(override_depth)
CONFIG.log_level = os.environ.get("COACH_LOG_LEVEL", CONFIG.log_level)
