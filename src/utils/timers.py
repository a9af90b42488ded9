# -*- coding: utf-8 -*-
"""
timers.py

Standardized progress/timing lines shared by every pipeline stage:
a header when a step starts and a `[TIME] <label>: <s>s` line when it ends.
"""

import time


def _t0(msg: str) -> float:
    """Start a monotonic timer and print a standard log header."""
    t = time.perf_counter()
    print(msg)
    return t


def _tend(label: str, t0: float) -> None:
    """Print a standardized [TIME] line for elapsed seconds."""
    print(f"[TIME] {label}: {time.perf_counter() - t0:.2f}s")
