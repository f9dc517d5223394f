import logging

MATE_SCORE = 100000
MAX_PLY = 128


def is_mate_score(score: int) -> bool:
    return abs(score) >= MATE_SCORE - MAX_PLY


def format_score(score: int) -> str:
    """Render a White-positive score as 'cp N' or 'mate N' (plies folded to moves)."""
    if is_mate_score(score):
        plies = MATE_SCORE - abs(score)
        mate_in = (plies + 1) // 2
        return f"mate {mate_in if score > 0 else -mate_in}"
    return f"cp {score}"


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
