"""Command line entry point for the pipeline simulator."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .processor import CycleLimitExceeded, Processor, parse_hex_values

ICACHE_FILE = "ICacheData.txt"
DCACHE_FILE = "DCacheData.txt"
REGISTER_FILE = "RegisterData.txt"


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pipesim",
        description="Run a program on the pipelined processor simulator.",
    )
    parser.add_argument("--icache", default=ICACHE_FILE, help="instruction cache bytes")
    parser.add_argument("--dcache", default=DCACHE_FILE, help="data cache bytes")
    parser.add_argument(
        "--registers", default=REGISTER_FILE, help="initial register values"
    )
    parser.add_argument(
        "--output-dir", default=".", help="directory for the result files"
    )
    parser.add_argument(
        "--max-cycles", type=int, default=None, help="stop after this many cycles"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Load the input files, run the simulation and write the results."""
    args = _parser().parse_args(argv)
    try:
        icache, dcache, registers = (
            parse_hex_values(Path(name).read_text())
            for name in (args.icache, args.dcache, args.registers)
        )
    except OSError as exc:
        print(f"pipesim: {exc}", file=sys.stderr)
        return 1

    processor = Processor(max_cycles=args.max_cycles)
    processor.setup(icache, dcache, registers)
    try:
        processor.startup()
    except CycleLimitExceeded as exc:
        print(f"pipesim: {exc}", file=sys.stderr)
        return 1
    processor.output(args.output_dir)
    return 0


if __name__ == "__main__":
    sys.exit(main())