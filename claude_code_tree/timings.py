"""Phase timings for the parse / consolidate / build pipeline.

Set ``CLAUDE_CODE_TREE_DEBUG_TIMING`` to 1, true or yes and every wrapped
phase prints one ``[TIMING]`` line to stderr. Off by default; when off the
context manager does nothing at all.
"""

import os
import sys
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Union

DEBUG_TIMING = os.getenv("CLAUDE_CODE_TREE_DEBUG_TIMING", "").lower() in (
    "1",
    "true",
    "yes",
)

PhaseName = Union[str, Callable[[], str]]


def _report(name: str, elapsed: float, since_start: Optional[float]) -> None:
    line = f"[TIMING] {name:40s} {elapsed:8.3f}s"
    if since_start is not None:
        line += f" (total: {since_start:8.3f}s)"
    print(line, file=sys.stderr, flush=True)


@contextmanager
def log_timing(phase: PhaseName, t_start: Optional[float] = None) -> Iterator[None]:
    """Time the enclosed block as one pipeline phase.

    ``phase`` may be a callable so that names like
    ``f"Build tree ({len(messages)} messages)"`` are only formatted after the
    block ran. Pass ``t_start`` (a ``time.time()`` value) to also print the
    time elapsed since the pipeline started.

        with log_timing(lambda: f"Parse ({len(raw_messages)} records)", t_start):
            ...
    """
    if not DEBUG_TIMING:
        yield
        return

    began = time.time()
    try:
        yield
    finally:
        ended = time.time()
        name = phase() if callable(phase) else phase
        _report(name, ended - began, None if t_start is None else ended - t_start)
