"""
Interactive query tool.

Loads the converted territory data once, then answers one query per
input line until ``exit`` or end of input.

Run:  python -m src.query.cli [--data territory_analysis_data.json] [--mode mock]
"""
from __future__ import annotations

import argparse
import sys
from typing import IO, Any, Sequence

from src.core.config import get_settings
from src.core.logging import get_logger
from src.query.loader import DataLoadError, load_records
from src.query.service import answer

logger = get_logger(__name__)

PROMPT = "\nWhat would you like to know about the customer data? "

_BANNER = """\
Data loaded successfully! Example queries:
- city:Atlanta
- sector = "Financial Services"
- companies with revenue over 100000
- companies with growth over 10%
- who uses mq
- select name, city where sector Technology
- show fields
- analyze top customers   (AI analysis)

Type "exit" to quit."""


def repl(
    records: Sequence[dict[str, Any]],
    stdin: IO[str] | None = None,
    stdout: IO[str] | None = None,
    mode: str | None = None,
) -> None:
    """Read query lines from *stdin* and write reports to *stdout*."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    interactive = stdin.isatty()
    while True:
        if interactive:
            stdout.write(PROMPT)
            stdout.flush()
        line = stdin.readline()
        if not line:
            break
        line = line.strip()
        if not line:
            continue
        if line.lower() == "exit":
            break
        stdout.write(answer(line, records, mode=mode) + "\n")
        stdout.flush()
    stdout.write("Goodbye!\n")


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Query the customer territory data.")
    parser.add_argument("--data", default=settings.data_path, help="converted JSON file")
    parser.add_argument("--mode", default=None, help="LLM provider for analysis questions")
    args = parser.parse_args(argv)

    print("Loading analysis data...")
    try:
        records = load_records(args.data)
    except DataLoadError as exc:
        print(f"Failed to load analysis data: {exc}", file=sys.stderr)
        return 1

    print(_BANNER)
    try:
        repl(records, mode=args.mode)
    except KeyboardInterrupt:
        print("\nGoodbye!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
