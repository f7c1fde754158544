"""Models for Claude Code stream-json transcripts and the tree built from them.

Transcript records and content blocks are pydantic models created by
``factories``. Classification results and tree nodes are plain dataclasses:
they are view models produced by the pipeline, never parsed from input.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, ClassVar, Literal, Optional, Union

from pydantic import BaseModel


class MessageKind(str, Enum):
    """Record kinds found in the ``type`` discriminator of a JSONL line.

    Using str as base class keeps comparisons with raw strings working.
    """

    SYSTEM = "system"
    ASSISTANT = "assistant"
    USER = "user"
    RESULT = "result"
    SUMMARY = "summary"


# =============================================================================
# Content Blocks
# =============================================================================


class TextBlock(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolUseBlock(BaseModel):
    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    # Usually an object, but any JSON value is accepted
    input: Any = {}


class ToolResultBlock(BaseModel):
    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: Union[str, list[Any]] = ""
    is_error: bool = False

    @property
    def text(self) -> str:
        """Text of the result.

        List content (MCP style ``[{"type": "text", "text": ...}]``) yields
        the first text item.
        """
        if isinstance(self.content, str):
            return self.content
        for item in self.content:
            if isinstance(item, dict) and item.get("type") == "text":
                return str(item.get("text", ""))
            if isinstance(item, str):
                return item
        return ""


ContentBlock = Union[TextBlock, ToolUseBlock, ToolResultBlock]


# =============================================================================
# Messages
# =============================================================================


class Message(BaseModel):
    """One logical record of the transcript.

    Assistant records that share ``message_id`` are merged by the
    consolidator; every other record maps one line to one Message.
    """

    kind: MessageKind
    subtype: Optional[str] = None
    session_id: Optional[str] = None
    message_id: Optional[str] = None
    role: Optional[str] = None
    model: Optional[str] = None
    content_blocks: list[ContentBlock] = []
    parent_tool_use_id: Optional[str] = None

    # Envelope fields (present on conversation-file records)
    uuid: Optional[str] = None
    timestamp: Optional[str] = None
    cwd: Optional[str] = None
    version: Optional[str] = None
    git_branch: Optional[str] = None

    # System init
    tools: Optional[list[Any]] = None

    # Summary records
    summary: Optional[str] = None

    # Result records
    total_cost_usd: Optional[float] = None
    duration_ms: Optional[float] = None
    num_turns: Optional[int] = None
    is_error: Optional[bool] = None
    result: Optional[str] = None

    stop_reason: Optional[str] = None
    usage: Optional[dict[str, Any]] = None

    @property
    def tool_uses(self) -> list[ToolUseBlock]:
        return [b for b in self.content_blocks if isinstance(b, ToolUseBlock)]

    @property
    def tool_results(self) -> list[ToolResultBlock]:
        return [b for b in self.content_blocks if isinstance(b, ToolResultBlock)]

    @property
    def text_blocks(self) -> list[TextBlock]:
        return [b for b in self.content_blocks if isinstance(b, TextBlock)]


class SessionInfo(BaseModel):
    """Session metadata used to seed the tree root."""

    id: Optional[str] = None
    model: Optional[str] = None
    cwd: Optional[str] = None
    git_branch: Optional[str] = None
    version: Optional[str] = None
    summary: Optional[str] = None
    timestamp: Optional[str] = None
    tools: Optional[list[Any]] = None


class ResultInfo(BaseModel):
    """Outcome of a run, taken from the last ``result`` record."""

    success: bool
    subtype: Optional[str] = None
    cost_usd: Optional[float] = None
    duration_ms: Optional[float] = None
    num_turns: Optional[int] = None


# =============================================================================
# Classification
# =============================================================================


class ContentCategory(str, Enum):
    """What a piece of content is, as far as display is concerned."""

    TOOL_INPUT = "tool_input"  # Tool parameters (always structured)
    JSON_API_RESPONSE = "json_api"  # MCP responses, API calls
    ERROR_OBJECT = "error_object"  # Errors from tools
    FILE_CONTENT = "file_content"  # Read tool results
    COMMAND_OUTPUT = "command_output"  # Bash/shell output
    GENERIC_TEXT = "generic_text"  # Plain text content


class DisplayStrategy(str, Enum):
    """How the rendering layer should present classified content."""

    JSON_POPUP_ALWAYS = "json-popup-always"
    JSON_POPUP_WITH_FOLDING = "json-popup-with-folding"
    SYNTAX_HIGHLIGHTED_POPUP = "syntax-highlighted-popup"
    TERMINAL_STYLE_POPUP = "terminal-style-popup"
    ERROR_POPUP_HIGHLIGHTED = "error-popup-highlighted"
    ADAPTIVE_INLINE_OR_POPUP = "adaptive-inline-or-popup"


@dataclass
class ClassificationResult:
    """Category and display recommendation for one content block.

    ``confidence`` is exactly 1.0 when the result came from structural data
    and lower when it came from text heuristics.
    """

    category: ContentCategory
    display_strategy: DisplayStrategy
    confidence: float = 1.0
    metadata: dict[str, Any] = field(default_factory=lambda: {})

    @property
    def is_structural(self) -> bool:
        return bool(self.metadata.get("structured_source"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "display_strategy": self.display_strategy.value,
            "confidence": self.confidence,
            "metadata": dict(self.metadata),
        }


# =============================================================================
# Tree Nodes
# =============================================================================


class NodeType(str, Enum):
    SESSION = "session"
    MESSAGE = "message"
    TOOL = "tool"
    RESULT = "result"
    TEXT = "text"


@dataclass(frozen=True)
class SourceRef:
    """Non-owning pointer back to the data a node was built from.

    Indexes into the message list passed to ``build_tree``; nodes never hold
    the Message or ContentBlock objects themselves.
    """

    message_index: int
    block_index: Optional[int] = None


@dataclass
class TreeNode:
    """Base node of the session tree.

    ``expanded`` is UI state; everything else is fixed at build time.
    """

    node_type: ClassVar[NodeType] = NodeType.TEXT

    id: str = ""
    display_text: str = ""
    children: list["TreeNode"] = field(default_factory=lambda: [])
    expanded: bool = False
    source: Optional[SourceRef] = None

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    def walk(self):
        """Yield this node and all descendants depth-first, in order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.node_type.value}
        for f in fields(self):
            if f.name == "children":
                continue
            value = getattr(self, f.name)
            if isinstance(value, ClassificationResult):
                value = value.to_dict()
            elif isinstance(value, SourceRef):
                value = {
                    "message_index": value.message_index,
                    "block_index": value.block_index,
                }
            data[f.name] = value
        data["children"] = [child.to_dict() for child in self.children]
        return data


@dataclass
class TextNode(TreeNode):
    node_type: ClassVar[NodeType] = NodeType.TEXT


@dataclass
class SessionNode(TreeNode):
    node_type: ClassVar[NodeType] = NodeType.SESSION

    session_id: str = "unknown"
    model: Optional[str] = None
    cwd: Optional[str] = None
    git_branch: Optional[str] = None
    version: Optional[str] = None
    summary: Optional[str] = None
    timestamp: Optional[str] = None


@dataclass
class MessageNode(TreeNode):
    node_type: ClassVar[NodeType] = NodeType.MESSAGE

    message_id: str = ""
    role: str = "assistant"
    preview: str = ""


@dataclass
class ResultNode(TreeNode):
    node_type: ClassVar[NodeType] = NodeType.RESULT

    tool_use_id: str = ""
    content: str = ""
    is_error: bool = False
    classification: Optional[ClassificationResult] = None
    use_rich_display: bool = False


@dataclass
class ToolNode(TreeNode):
    node_type: ClassVar[NodeType] = NodeType.TOOL

    tool_use_id: str = ""
    tool_name: str = ""
    tool_input: Any = field(default_factory=lambda: {})
    has_result: bool = False

    @property
    def result(self) -> Optional[ResultNode]:
        for child in self.children:
            if isinstance(child, ResultNode):
                return child
        return None
