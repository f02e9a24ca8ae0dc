#!/usr/bin/env python3
"""Micro-benchmarks for the hot paths of Emitron.

Usage:
    python scripts/benchmark.py [--number N]
"""

import argparse
import logging
import timeit
from typing import Callable
from typing import List
from typing import TypedDict

from emitron import Emitron
from emitron.config import configure_logging

logger = logging.getLogger("emitron.benchmark")


class BenchEvents(TypedDict):
    simple: str
    multiple: Callable[[str, int], None]
    array: List[str]


def _noop(*_args) -> None:
    return None


def _create() -> Emitron[BenchEvents]:
    bus = Emitron[BenchEvents](BenchEvents)
    bus.on("simple", _noop).on("multiple", _noop).on("array", _noop)
    return bus


def emit_simple() -> None:
    _create().emit("simple", "test")


def emit_multiple() -> None:
    _create().emit("multiple", "test", 42)


def emit_array() -> None:
    _create().emit("array", ["item1", "item2", "item3"])


def add_remove_listener() -> None:
    _create().on("simple", _noop).off("simple", _noop)


def once_listener() -> None:
    _create().once("simple", lambda value: None).emit("simple", "test")


def wildcard_listener() -> None:
    _create().on_any(lambda key, payload: None).emit("simple", "test")


CASES = {
    "emit simple event": emit_simple,
    "emit multiple args event": emit_multiple,
    "emit array event": emit_array,
    "add and remove listener": add_remove_listener,
    "add and trigger once listener": once_listener,
    "wildcard listener": wildcard_listener,
}


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--number", type=int, default=100_000, help="iterations per case")
    args = parser.parse_args()

    configure_logging("INFO")
    for name, func in CASES.items():
        elapsed = timeit.timeit(func, number=args.number)
        logger.info("%-32s %8.0f ops/s", name, args.number / elapsed)


if __name__ == "__main__":
    main()
