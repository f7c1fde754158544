#!/usr/bin/env python3
"""Pygments lexer lookup for popup content.

Resolves a lexer from a file path (extension, then filename patterns) or,
when the path says nothing, from the file type sniffed by the classifier.
"""

import fnmatch
import os
from typing import Optional

from pygments.lexer import Lexer  # type: ignore[reportUnknownVariableType]
from pygments.lexers import TextLexer, get_all_lexers, get_lexer_by_name  # type: ignore[reportUnknownVariableType]
from pygments.util import ClassNotFound  # type: ignore[reportUnknownVariableType]

# Sniffed file type -> pygments alias
FILE_TYPE_LEXERS: dict[str, str] = {
    "json": "json",
    "xml": "xml",
    "html": "html",
    "sh": "bash",
    "python": "python",
    "javascript": "javascript",
    "lua": "lua",
    "go": "go",
    "rust": "rust",
    "c": "c",
    "ruby": "ruby",
    "perl": "perl",
    "ini": "ini",
    "config": "ini",
}

# Cache for Pygments lexer pattern matching
_pattern_cache: Optional[dict[str, str]] = None
_extension_cache: Optional[dict[str, str]] = None


def _init_lexer_caches() -> tuple[dict[str, str], dict[str, str]]:
    """Initialize lexer pattern and extension caches.

    Returns:
        Tuple of (pattern_cache, extension_cache)
    """
    global _pattern_cache, _extension_cache

    if _pattern_cache is not None and _extension_cache is not None:
        return _pattern_cache, _extension_cache

    pattern_cache: dict[str, str] = {}
    extension_cache: dict[str, str] = {}

    for _name, aliases, patterns, _mimetypes in get_all_lexers():  # type: ignore[reportUnknownVariableType]
        if not aliases or not patterns:
            continue
        lexer_alias = aliases[0]
        for pattern in patterns:
            pattern_lower = pattern.lower()
            pattern_cache.setdefault(pattern_lower, lexer_alias)
            # Plain "*.ext" patterns also go in the fast lookup
            if (
                pattern_lower.startswith("*.")
                and "*" not in pattern_lower[2:]
                and "?" not in pattern_lower[2:]
            ):
                extension_cache.setdefault(pattern_lower[2:], lexer_alias)

    _pattern_cache = pattern_cache
    _extension_cache = extension_cache
    return pattern_cache, extension_cache


def lexer_alias_for_path(file_path: str) -> Optional[str]:
    """Pygments alias for a file path, or None when nothing matches."""
    pattern_cache, extension_cache = _init_lexer_caches()
    basename = os.path.basename(file_path).lower()
    if not basename:
        return None

    if "." in basename:
        alias = extension_cache.get(basename.rsplit(".", 1)[-1])
        if alias is not None:
            return alias

    for pattern, alias in pattern_cache.items():
        if fnmatch.fnmatch(basename, pattern):
            return alias
    return None


def resolve_lexer_alias(
    file_path: Optional[str] = None, file_type: Optional[str] = None
) -> str:
    """Best lexer alias for content, "text" when nothing is known."""
    if file_path:
        alias = lexer_alias_for_path(file_path)
        if alias is not None:
            return alias
    if file_type:
        return FILE_TYPE_LEXERS.get(file_type, "text")
    return "text"


def resolve_lexer(
    file_path: Optional[str] = None, file_type: Optional[str] = None
) -> Lexer:
    """Lexer instance for content; falls back to TextLexer.

    stripall=False preserves leading whitespace (code indentation).
    """
    alias = resolve_lexer_alias(file_path, file_type)
    try:
        return get_lexer_by_name(alias, stripall=False)  # type: ignore[reportUnknownVariableType]
    except ClassNotFound:
        return TextLexer()  # type: ignore[reportUnknownVariableType]
