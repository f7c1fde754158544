"""Factories for tree nodes and their display text."""

import copy
import os
from typing import Any, Optional

from .config import Thresholds
from .models import (
    ClassificationResult,
    MessageNode,
    ResultNode,
    SessionInfo,
    SessionNode,
    SourceRef,
    TextNode,
    ToolNode,
    ToolUseBlock,
)
from .utils import first_line, truncate

UNKNOWN_SESSION_ID = "unknown"

TOOL_ICONS: dict[str, str] = {
    "Read": "📖",
    "Write": "✏️",
    "Edit": "✏️",
    "MultiEdit": "✏️",
    "Bash": "💻",
    "Task": "🔧",
}
NAMESPACED_TOOL_ICON = "🔌"
DEFAULT_TOOL_ICON = "🔧"
ERROR_RESULT_TEXT = "❌ Error"


def tool_icon(tool_name: str) -> str:
    if tool_name in TOOL_ICONS:
        return TOOL_ICONS[tool_name]
    if tool_name.startswith("mcp__"):
        return NAMESPACED_TOOL_ICON
    return DEFAULT_TOOL_ICON


def tool_primary_arg(tool_input: Any, thresholds: Thresholds) -> Optional[str]:
    """The one input argument worth showing next to a tool's name."""
    if not isinstance(tool_input, dict):
        return None

    file_path = tool_input.get("file_path")
    if isinstance(file_path, str) and file_path:
        return os.path.basename(file_path) or file_path

    command = tool_input.get("command")
    if isinstance(command, str) and command:
        return truncate(command, thresholds.command_arg_max_chars)

    library = tool_input.get("libraryName")
    if isinstance(library, str) and library:
        return library

    return None


def session_display_text(session_id: str, timestamp: Optional[str] = None) -> str:
    text = f"Session: {session_id[:8]}"
    if timestamp:
        text += f" [{timestamp}]"
    return text


def create_session_node(session_info: Optional[SessionInfo]) -> SessionNode:
    info = session_info or SessionInfo()
    session_id = info.id or UNKNOWN_SESSION_ID
    return SessionNode(
        id=f"session-{session_id}",
        display_text=session_display_text(session_id, info.timestamp),
        expanded=True,
        session_id=session_id,
        model=info.model,
        cwd=info.cwd,
        git_branch=info.git_branch,
        version=info.version,
        summary=info.summary,
        timestamp=info.timestamp,
    )


def create_message_node(
    message_id: str,
    preview: str,
    source: SourceRef,
    thresholds: Thresholds,
    role: str = "assistant",
) -> MessageNode:
    display = f"Claude: {preview}" if preview else "Claude"
    return MessageNode(
        id=f"msg-{message_id}",
        display_text=truncate(display, thresholds.preview_max_chars),
        source=source,
        message_id=message_id,
        role=role,
        preview=preview,
    )


def create_tool_node(
    block: ToolUseBlock, source: SourceRef, thresholds: Thresholds
) -> ToolNode:
    display = f"{tool_icon(block.name)} {block.name}"
    arg = tool_primary_arg(block.input, thresholds)
    if arg:
        display += f" {arg}"
    return ToolNode(
        id=f"tool-{block.id}",
        display_text=display,
        source=source,
        tool_use_id=block.id,
        tool_name=block.name,
        tool_input=copy.deepcopy(block.input),
    )


def result_display_text(content: str, is_error: bool, thresholds: Thresholds) -> str:
    if is_error:
        return ERROR_RESULT_TEXT
    line = first_line(content).strip()
    if line:
        return truncate(line, thresholds.result_preview_max_chars)
    return "Result"


def create_result_node(
    tool_use_id: str,
    content: str,
    classification: ClassificationResult,
    use_rich_display: bool,
    source: SourceRef,
    thresholds: Thresholds,
    is_error: bool = False,
) -> ResultNode:
    return ResultNode(
        id=f"result-{tool_use_id}",
        display_text=result_display_text(content, is_error, thresholds),
        source=source,
        tool_use_id=tool_use_id,
        content=content,
        is_error=is_error,
        classification=classification,
        use_rich_display=use_rich_display,
    )


def create_text_node(
    node_id: str, text: str, source: Optional[SourceRef] = None
) -> TextNode:
    return TextNode(id=node_id, display_text=text, source=source)
