import argparse
import asyncio
import time

import chess

from coach.config import CONFIG
from coach.core.threats import threatened_squares
from coach.core.utils import configure_logging, format_score
from coach.errors import IllegalMoveError
from coach.main import Engine
from coach.selector import Difficulty


def play(engine: Engine, human_color: chess.Color, difficulty: Difficulty, training: bool = False,
         input_fn=input, output=print, max_plies: int = 400):
    """Human vs engine on the session board. Returns the SAN move list."""
    board = engine.board
    while not board.is_game_over() and len(board.move_history) < max_plies:
        engine.print_board(output)
        output("----------------------------")

        if board.board.turn == human_color:
            if training:
                records = engine.detect_threats(board.board, human_color)
                if records:
                    names = ", ".join(sorted(chess.square_name(sq) for sq in threatened_squares(records)))
                    output(f"Warning: {len(records)} threat(s) against {names}")
            user_move = input_fn("Your move (SAN or UCI, 'quit' to stop): ").strip()
            if user_move == "quit":
                break
            try:
                board.make_move(user_move)
            except IllegalMoveError:
                output("Illegal move, try again.")
                continue
        else:
            move = engine.select_move(board.board, difficulty)
            san = board.board.san(move)
            board.push(move)
            output(f"Engine plays: {san} | Eval: {format_score(engine.evaluator.evaluate(board.board))}")

    output("Game Over")
    output(f"Result: {board.board.result()}")
    return list(board.move_history)


def print_report(report, output=print):
    if not report.mistakes:
        output("No big mistakes found.")
    for m in report.mistakes:
        hint = f" (better: {m.better_move})" if m.better_move else ""
        output(f"{m.move_number}. {m.notation}: lost {m.loss / 100:.2f}{hint}")
    if not report.complete:
        output("Analysis incomplete: evaluation service stopped answering.")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Play a training game against the engine.")
    parser.add_argument("--difficulty", default="novice", choices=[d.value for d in Difficulty])
    parser.add_argument("--color", default="white", choices=["white", "black"])
    parser.add_argument("--training", action="store_true", help="warn about attacked pieces")
    parser.add_argument("--user", default="local", help="user id for the game record")
    args = parser.parse_args(argv)

    configure_logging(CONFIG.log_level)
    engine = Engine()
    human = chess.WHITE if args.color == "white" else chess.BLACK
    difficulty = Difficulty.parse(args.difficulty)

    started = time.monotonic()
    moves = play(engine, human, difficulty, training=args.training)
    if engine.board.is_game_over():
        engine.record_game(args.user, human, difficulty.value, int(time.monotonic() - started))

    async def review():
        try:
            return await engine.analyze_game(moves, human)
        finally:
            await engine.close()

    print_report(asyncio.run(review()))


if __name__ == "__main__":
    main()
