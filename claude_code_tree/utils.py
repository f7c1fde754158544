"""Text helpers shared by the classifier and the tree builder."""

import re

_LINE_BREAKS = re.compile(r"[\r\n]")
_WHITESPACE_RUN = re.compile(r"\s+")


def clean_text(text: str) -> str:
    """Collapse a block of text into one display line."""
    return _WHITESPACE_RUN.sub(" ", _LINE_BREAKS.sub(" ", text)).strip()


def truncate(text: str, max_chars: int) -> str:
    """Truncate to ``max_chars`` including a trailing '...'."""
    if len(text) <= max_chars:
        return text
    return text[: max_chars - 3] + "..."


def strip_final_newline(text: str) -> str:
    """Drop one line terminator from the end of ``text``."""
    if text.endswith("\r\n"):
        return text[:-2]
    if text.endswith("\n"):
        return text[:-1]
    return text


def count_lines(text: str) -> int:
    """Number of lines in ``text``.

    Empty text has zero lines and a final newline does not start a new one.
    """
    if not text:
        return 0
    return strip_final_newline(text).count("\n") + 1


def first_line(text: str) -> str:
    return text.splitlines()[0] if text else ""


def split_text_into_chunks(text: str, max_chunk_size: int) -> list[str]:
    """Split long text into chunks at word boundaries.

    A chunk is cut at the last space inside the window when that space is
    past the middle of the window; otherwise the chunk is hard-cut and marked
    with '...'.
    """
    if len(text) <= max_chunk_size:
        return [text]

    chunks: list[str] = []
    remaining = text
    while remaining:
        if len(remaining) <= max_chunk_size:
            chunks.append(remaining)
            break

        window = remaining[:max_chunk_size]
        last_space = window.rfind(" ")
        if last_space > max_chunk_size // 2:
            chunks.append(remaining[:last_space])
            remaining = remaining[last_space + 1 :]
        else:
            chunks.append(remaining[: max_chunk_size - 3] + "...")
            remaining = remaining[max_chunk_size - 3 :]

    return chunks
