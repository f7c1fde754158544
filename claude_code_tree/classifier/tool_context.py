"""Tool-specific knowledge used by the classifier.

Knows which tools read files or run shell commands, how namespaced
(``mcp__server__tool``) names are formed, and how to guess a file type
from the first few hundred characters of file content.
"""

import re
from typing import NamedTuple, Optional

from .json_detector import is_json_content

# Tools whose results are file contents (or file listings)
FILE_READ_TOOLS = frozenset({"Read", "Glob", "LS", "NotebookRead"})

_SHELL_TOOL = re.compile(r"^[Bb]ash")
SHELL_TOOL_NAMES = frozenset({"sh", "Shell"})

MCP_PREFIX = "mcp__"
NAMESPACE_SEPARATOR = "__"

# Read tool output is numbered like `cat -n`: "    12→text" or "    12\ttext"
_LINE_NUMBER_PREFIX = re.compile(r"^[ \t]*\d+(?:→|\t)", re.MULTILINE)

_SHEBANG = re.compile(r"\A#!\s*(\S+)(?:[ \t]+(\S+))?")
_SHEBANG_INTERPRETERS = {
    "python": "python",
    "python3": "python",
    "node": "javascript",
    "ruby": "ruby",
    "perl": "perl",
    "lua": "lua",
}

# Checked in order; the first match wins
LANGUAGE_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("javascript", re.compile(r"^\s*import\s+.+\s+from\s+['\"]", re.MULTILINE)),
    ("lua", re.compile(r"^\s*local\s+\w+", re.MULTILINE)),
    ("lua", re.compile(r"^\s*function\s+[\w.:]+\s*\(", re.MULTILINE)),
    ("python", re.compile(r"^\s*def\s+\w+\s*\(", re.MULTILINE)),
    ("python", re.compile(r"^\s*(?:from\s+[\w.]+\s+)?import\s+[\w.]+", re.MULTILINE)),
    ("python", re.compile(r"^\s*class\s+\w+.*:\s*$", re.MULTILINE)),
    ("javascript", re.compile(r"^\s*(?:const|let|var)\s+\w+\s*=", re.MULTILINE)),
    ("go", re.compile(r"^\s*package\s+\w+\s*$", re.MULTILINE)),
    ("go", re.compile(r"^\s*func\s+", re.MULTILINE)),
    ("rust", re.compile(r"^\s*(?:pub\s+)?fn\s+\w+", re.MULTILINE)),
    ("c", re.compile(r"^\s*#include\s*[<\"]", re.MULTILINE)),
)

_INI_SECTION = re.compile(r"\A\s*\[[^\]\n]+\]\s*$", re.MULTILINE)
_CONFIG_ASSIGNMENT = re.compile(r"\A\s*[\w.-]+\s*[:=]")


class NamespacedTool(NamedTuple):
    prefix: str
    server: str
    tool: str


def parse_namespaced_tool(tool_name: str) -> Optional[NamespacedTool]:
    """Split ``prefix__server__tool`` names; None for plain tool names."""
    parts = tool_name.split(NAMESPACE_SEPARATOR, 2)
    if len(parts) != 3 or not all(parts):
        return None
    return NamespacedTool(*parts)


def is_namespaced_tool(tool_name: Optional[str]) -> bool:
    return bool(tool_name) and parse_namespaced_tool(tool_name or "") is not None


def is_mcp_tool(tool_name: Optional[str]) -> bool:
    return bool(tool_name) and (tool_name or "").startswith(MCP_PREFIX)


def is_file_read_tool(tool_name: Optional[str]) -> bool:
    return tool_name in FILE_READ_TOOLS


def is_shell_tool(tool_name: Optional[str]) -> bool:
    if not tool_name:
        return False
    return bool(_SHELL_TOOL.match(tool_name)) or tool_name in SHELL_TOOL_NAMES


def strip_line_numbers(content: str) -> str:
    """Remove `cat -n` style prefixes that the Read tool adds."""
    return _LINE_NUMBER_PREFIX.sub("", content)


def detect_file_type(content: str, sniff_chars: int = 200) -> str:
    """Guess a file type from the start of file content.

    Cheap structural sniffing over the first ``sniff_chars`` characters:
    JSON (confirmed by decoding), XML/HTML, shebang scripts, then a fixed
    priority list of language keywords. Defaults to "text".
    """
    if not content or not content.strip():
        return "text"

    body = strip_line_numbers(content)
    head = body[:sniff_chars]
    head_stripped = head.lstrip()
    head_lower = head_stripped.lower()

    if head_stripped[:1] in ("{", "[") and is_json_content(body):
        return "json"

    if head_lower.startswith("<?xml"):
        return "xml"
    if head_lower.startswith("<!doctype html") or head_lower.startswith("<html"):
        return "html"
    if re.match(r"<[a-z][\w:-]*[\s/>]", head_lower):
        return "xml"

    shebang = _SHEBANG.match(head_stripped)
    if shebang:
        interpreter = shebang.group(1).rsplit("/", 1)[-1]
        if interpreter == "env" and shebang.group(2):
            interpreter = shebang.group(2)
        return _SHEBANG_INTERPRETERS.get(interpreter, "sh")

    for language, pattern in LANGUAGE_PATTERNS:
        if pattern.search(head):
            return language

    if _INI_SECTION.search(head) and "=" in head:
        return "ini"
    if _CONFIG_ASSIGNMENT.match(head):
        return "config"

    return "text"
