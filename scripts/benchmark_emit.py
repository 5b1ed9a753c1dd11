#!/usr/bin/env python3
"""
Measure emit throughput.

Subscribes three prioritised listeners to one hot event plus two rarely
emitted events, then emits in a tight loop and reports timing.
"""

from __future__ import annotations

import argparse
import time

from rich.console import Console
from rich.table import Table

from good_emitter import Emitter

console = Console()


def build_emitter() -> tuple[Emitter, list[int]]:
    emitter = Emitter()
    counts = [0, 0, 0]

    def high(username: str) -> None:
        counts[0] += 1

    def medium(username: str) -> None:
        for _ in range(1000):
            pass
        counts[1] += 1

    def low(username: str) -> None:
        for _ in range(10000):
            pass
        counts[2] += 1

    emitter.subscribe("userLoggedIn", high, priority=100)
    emitter.subscribe("userLoggedIn", medium, priority=50)
    emitter.subscribe("userLoggedIn", low, priority=10)
    emitter.subscribe("systemCheck", lambda message: None)
    emitter.subscribe("dataUpdate", lambda message: None)
    return emitter, counts


def run(iterations: int) -> float:
    emitter, counts = build_emitter()

    start = time.perf_counter()
    for i in range(iterations):
        emitter.emit("userLoggedIn", f"User{i}")
        if i % 100 == 0:
            emitter.emit("systemCheck", f"System Check at {i}")
            emitter.emit("dataUpdate", f"Data Update at {i}")
    elapsed = time.perf_counter() - start

    assert counts == [iterations] * 3
    return elapsed


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--iterations", type=int, default=10_000)
    parser.add_argument("--runs", type=int, default=3)
    args = parser.parse_args(argv)

    table = Table(title=f"emit x {args.iterations}")
    table.add_column("Run", justify="right")
    table.add_column("Seconds", justify="right")
    table.add_column("Emits/s", justify="right")

    for index in range(args.runs):
        elapsed = run(args.iterations)
        table.add_row(str(index + 1), f"{elapsed:.3f}", f"{args.iterations / elapsed:,.0f}")

    console.print(table)


if __name__ == "__main__":
    main()
