"""Line supply and streaming accumulation around the core pipeline.

The pipeline itself never touches files: it takes a list of lines. This
module reads those lines from disk and keeps a running transcript for live
streams, rebuilding everything on each append.
"""

import logging
import time
from dataclasses import dataclass, field
from itertools import islice
from pathlib import Path
from typing import Iterable, Optional, Union

from .classifier import ContentClassifier
from .config import DEFAULT_CONFIG, TreeConfig
from .errors import ParseError
from .models import Message, ResultInfo, SessionInfo, SessionNode
from .parser import get_result_info, get_session_info, parse_lines
from .timings import log_timing
from .tree_builder import build_tree

logger = logging.getLogger(__name__)


@dataclass
class TranscriptView:
    """Everything the UI needs from one pass of the pipeline."""

    messages: list[Message]
    errors: list[ParseError]
    tree: SessionNode
    session_info: Optional[SessionInfo] = None
    result_info: Optional[ResultInfo] = None
    line_count: int = 0

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


def read_transcript_lines(
    path: Union[str, Path], limit: Optional[int] = None
) -> list[str]:
    """Read a JSONL file as a list of lines without their line endings.

    Blank lines are kept so that error line numbers match the file.

    Args:
        path: The JSONL file
        limit: Only read the first ``limit`` lines (for very large files)
    """
    if limit is not None and limit < 0:
        raise ValueError(f"limit must not be negative, got {limit}")

    with open(path, "r", encoding="utf-8", errors="replace") as f:
        raw = f if limit is None else islice(f, limit)
        return [line.rstrip("\r\n") for line in raw]


def process_lines(
    lines: list[str],
    session_info: Optional[SessionInfo] = None,
    classifier: Optional[ContentClassifier] = None,
    config: TreeConfig = DEFAULT_CONFIG,
) -> TranscriptView:
    """Run parse, consolidate and tree building over ``lines``.

    Session info found in the stream wins over the ``session_info`` hint;
    the hint fills whatever the stream does not say.
    """
    messages, errors = parse_lines(lines)

    found = get_session_info(messages)
    if found is not None and session_info is not None:
        hint = session_info.model_dump(exclude_none=True)
        merged = {**hint, **found.model_dump(exclude_none=True)}
        found = SessionInfo.model_validate(merged)
    info = found or session_info

    tree = build_tree(messages, info, classifier=classifier, config=config)
    return TranscriptView(
        messages=messages,
        errors=errors,
        tree=tree,
        session_info=info,
        result_info=get_result_info(messages),
        line_count=len(lines),
    )


def load_transcript(
    path: Union[str, Path],
    limit: Optional[int] = None,
    session_info: Optional[SessionInfo] = None,
    config: TreeConfig = DEFAULT_CONFIG,
) -> TranscriptView:
    """Read a JSONL transcript from disk and run the whole pipeline."""
    t_start = time.time()
    with log_timing(f"Read {Path(path).name}", t_start):
        lines = read_transcript_lines(path, limit)

    view = process_lines(lines, session_info, config=config)
    if view.errors:
        logger.info("%s: %d of %d lines failed to parse", path, len(view.errors), len(lines))
    return view


@dataclass
class TranscriptStream:
    """Accumulates lines from a live source and rebuilds on every append.

    Rebuilding is a full pass over all lines received so far; there is no
    incremental update. The classifier (and its cache) is reused across
    rebuilds.
    """

    session_info: Optional[SessionInfo] = None
    config: TreeConfig = field(default_factory=TreeConfig)
    lines: list[str] = field(default_factory=lambda: [])
    classifier: Optional[ContentClassifier] = None
    _view: Optional[TranscriptView] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.classifier is None:
            self.classifier = ContentClassifier(self.config)

    def feed(self, line: str) -> TranscriptView:
        """Append one line and rebuild."""
        self.lines.append(line.rstrip("\r\n"))
        return self.rebuild()

    def feed_many(self, lines: Iterable[str]) -> TranscriptView:
        """Append several lines and rebuild once."""
        self.lines.extend(line.rstrip("\r\n") for line in lines)
        return self.rebuild()

    def rebuild(self) -> TranscriptView:
        self._view = process_lines(
            self.lines, self.session_info, classifier=self.classifier, config=self.config
        )
        return self._view

    def reset(self) -> None:
        self.lines.clear()
        self._view = None
        if self.classifier is not None:
            self.classifier.clear_cache()

    @property
    def view(self) -> TranscriptView:
        if self._view is None:
            return self.rebuild()
        return self._view

    @property
    def messages(self) -> list[Message]:
        return self.view.messages

    @property
    def errors(self) -> list[ParseError]:
        return self.view.errors

    @property
    def tree(self) -> SessionNode:
        return self.view.tree
