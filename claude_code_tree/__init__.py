# Claude Code Tree - turn Claude Code stream-json transcripts into a navigable tree

from .classifier import ContentClassifier, classify
from .consolidator import consolidate_messages
from .linker import ToolLinkIndex, build_tool_index
from .loader import TranscriptStream, load_transcript, read_transcript_lines
from .parser import get_result_info, get_session_info, get_text_preview, parse_line, parse_lines
from .tree_builder import build_tree

__all__ = [
    "ContentClassifier",
    "ToolLinkIndex",
    "TranscriptStream",
    "build_tool_index",
    "build_tree",
    "classify",
    "consolidate_messages",
    "get_result_info",
    "get_session_info",
    "get_text_preview",
    "load_transcript",
    "parse_line",
    "parse_lines",
    "read_transcript_lines",
]
