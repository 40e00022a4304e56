#!/usr/bin/env python3
"""Demo entry point: seeds the sample question bank and starts a quiz."""

import sys
from pathlib import Path


def main():
    sys.path.insert(0, str(Path(__file__).parent / "src"))
    from academy_quiz.quiz_runner import main as run_quiz

    argv = sys.argv[1:]
    if "--questions" not in argv and "--leaderboard" not in argv:
        db = Path("academy_quiz.db")
        if not db.exists():
            argv = ["--questions", str(Path(__file__).parent / "data" / "questions.json")] + argv
    return run_quiz(argv)


if __name__ == "__main__":
    sys.exit(main())
