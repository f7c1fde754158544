#!/usr/bin/env python3
"""Parse Claude Code stream-json (JSONL) output into Message records.

This module provides:
- parse_line: Parse one JSONL line into a Message
- parse_lines: Parse a batch, collecting per-line errors
- get_session_info / get_result_info: Session facts found in the stream
- get_text_preview: One-line preview of an assistant message

For Message and ContentBlock creation, see factories/.
"""

import json
import logging
import time
from typing import Iterable, Optional

from .consolidator import consolidate_messages
from .errors import DecodeError, ParseError, SchemaError
from .factories import create_message
from .models import Message, MessageKind, ResultInfo, SessionInfo
from .timings import log_timing
from .utils import truncate

logger = logging.getLogger(__name__)


def parse_line(line: str, issues: Optional[list[ParseError]] = None) -> Optional[Message]:
    """Parse a single JSONL line into a Message.

    Args:
        line: One line of stream-json output
        issues: Optional collector for block-level schema errors; blocks with
            problems are dropped from the returned message either way

    Returns:
        The Message, or None for blank lines and skipped internal records

    Raises:
        DecodeError: If the line is not valid JSON
        SchemaError: If the JSON is not a recognisable transcript record
    """
    if not line.strip():
        return None

    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise DecodeError(f"JSON decode error: {e}") from e

    if not isinstance(data, dict):
        raise SchemaError(f"Line is not a JSON object ({type(data).__name__})")

    return create_message(data, issues)


def parse_lines(
    lines: Iterable[str], consolidate: bool = True
) -> tuple[list[Message], list[ParseError]]:
    """Parse multiple JSONL lines into a list of messages.

    Every line is parsed independently; a bad line is recorded with its
    1-based line number and never stops the lines after it.

    Args:
        lines: JSONL lines in stream order
        consolidate: Merge assistant records sharing a message id

    Returns:
        Tuple of (messages, errors)
    """
    t_start = time.time()
    raw_messages: list[Message] = []
    errors: list[ParseError] = []

    with log_timing(lambda: f"Parse ({len(raw_messages)} records)", t_start):
        for line_no, line in enumerate(lines, 1):
            issues: list[ParseError] = []
            try:
                message = parse_line(line, issues)
            except ParseError as e:
                errors.append(e.with_line(line_no))
                logger.debug("Skipping line %d: %s", line_no, e.reason)
                continue

            for issue in issues:
                errors.append(issue.with_line(line_no))
                logger.debug("Dropped block on line %d: %s", line_no, issue.reason)
            if message is not None:
                raw_messages.append(message)

    if not consolidate:
        return raw_messages, errors

    with log_timing("Consolidate", t_start):
        messages = consolidate_messages(raw_messages)
    return messages, errors


def get_text_preview(message: Message, max_chars: int = 80) -> Optional[str]:
    """First line of the first text block of an assistant message."""
    if message.kind != MessageKind.ASSISTANT:
        return None
    for block in message.text_blocks:
        text = block.text.split("\n", 1)[0]
        return truncate(text, max_chars)
    return None


def get_session_info(messages: list[Message]) -> Optional[SessionInfo]:
    """Extract session metadata from the stream.

    Prefers the ``system``/``init`` record; falls back to the first record
    carrying a session id (conversation files have no init record).
    """
    summary: Optional[str] = None
    for message in messages:
        if message.kind == MessageKind.SUMMARY and message.summary:
            summary = message.summary
            break

    for message in messages:
        if message.kind == MessageKind.SYSTEM and message.subtype == "init":
            return SessionInfo(
                id=message.session_id,
                model=message.model,
                cwd=message.cwd,
                tools=message.tools,
                summary=summary,
            )

    for message in messages:
        if message.session_id:
            return SessionInfo(
                id=message.session_id,
                model=message.model,
                cwd=message.cwd,
                version=message.version,
                git_branch=message.git_branch,
                summary=summary,
            )

    return None


def get_result_info(messages: list[Message]) -> Optional[ResultInfo]:
    """Outcome of the run from the last ``result`` record, if any."""
    for message in reversed(messages):
        if message.kind == MessageKind.RESULT:
            return ResultInfo(
                success=message.subtype == "success",
                subtype=message.subtype,
                cost_usd=message.total_cost_usd,
                duration_ms=message.duration_ms,
                num_turns=message.num_turns,
            )
    return None
