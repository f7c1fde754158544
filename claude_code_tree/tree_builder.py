#!/usr/bin/env python3
"""Build the session tree from a consolidated message list.

The tree is rebuilt from scratch on every call. Node ids come from stable
source identifiers (session, message and tool use ids) plus a per-build
counter for synthetic text nodes, so identical input always yields an
identical tree.
"""

import hashlib
import logging
import time
from typing import Optional

from .classifier import ContentClassifier, fallback_classification
from .config import DEFAULT_CONFIG, TreeConfig
from .errors import TreeInvariantError
from .linker import ToolLinkIndex, build_tool_index
from .models import (
    ContentCategory,
    Message,
    MessageKind,
    MessageNode,
    ResultNode,
    SessionInfo,
    SessionNode,
    SourceRef,
    TextNode,
    ToolNode,
    ToolResultBlock,
    ToolUseBlock,
)
from .nodes import (
    UNKNOWN_SESSION_ID,
    create_message_node,
    create_result_node,
    create_session_node,
    create_text_node,
    create_tool_node,
    session_display_text,
)
from .timings import log_timing
from .utils import (
    clean_text,
    count_lines,
    split_text_into_chunks,
    strip_final_newline,
)

logger = logging.getLogger(__name__)

FULL_TEXT_PREFIX = "Full text: "
FULL_TEXT_CONTINUATION = " " * 10

RESULT_SUMMARY_FORMAT = (
    "Session Complete: {subtype} | Cost: ${cost:.4f} | "
    "Duration: {duration}ms | Turns: {turns}"
)


def tool_summary(tool_uses: list[ToolUseBlock]) -> str:
    """Preview for an assistant message made only of tool calls."""
    names = [block.name for block in tool_uses]
    if len(names) == 1:
        return f"Used {names[0]}"
    return f"Used {len(names)} tools: {', '.join(names)}"


def more_lines_text(remaining: int) -> str:
    return f"… {remaining} more line" if remaining == 1 else f"… {remaining} more lines"


def unique_tool_uses(tool_uses: list[ToolUseBlock]) -> list[ToolUseBlock]:
    """First occurrence of each tool use id, in order."""
    seen: set[str] = set()
    unique: list[ToolUseBlock] = []
    for block in tool_uses:
        if block.id not in seen:
            seen.add(block.id)
            unique.append(block)
    return unique


def fallback_message_id(message: Message, position: int) -> str:
    """Content-derived id for an assistant message that has none."""
    first_text = message.text_blocks[0].text[:50] if message.text_blocks else ""
    seed = f"{position}:{first_text}:{message.timestamp or ''}"
    return hashlib.sha256(seed.encode("utf-8")).hexdigest()[:12]


def result_summary_text(message: Message) -> str:
    return RESULT_SUMMARY_FORMAT.format(
        subtype=message.subtype or "unknown",
        cost=message.total_cost_usd or 0.0,
        duration=int(message.duration_ms or 0),
        turns=message.num_turns or 0,
    )


class _TreeBuild:
    """State for a single build: the link index and the text node counter."""

    def __init__(
        self,
        messages: list[Message],
        config: TreeConfig,
        classifier: ContentClassifier,
    ):
        self.messages = messages
        self.config = config
        self.thresholds = config.thresholds
        self.classifier = classifier
        self.index: ToolLinkIndex = build_tool_index(messages)
        self._positions = {id(message): i for i, message in enumerate(messages)}
        self._text_counter = 0
        # Tool use ids already in the tree; a repeated block is shown once
        self._emitted_tool_ids: set[str] = set()

    def run(self, session_info: Optional[SessionInfo]) -> SessionNode:
        root = create_session_node(session_info)
        processed: set[str] = set()

        for position, message in enumerate(self.messages):
            if message.kind == MessageKind.SYSTEM:
                if message.subtype == "init":
                    self._apply_init(root, message)
            elif message.kind == MessageKind.RESULT:
                root.children.append(
                    self._text_node(root.id, result_summary_text(message), SourceRef(position))
                )
            elif message.kind == MessageKind.ASSISTANT:
                message_id = message.message_id or fallback_message_id(message, position)
                if message_id in processed:
                    continue
                processed.add(message_id)
                root.children.append(self._message_node(message, message_id, position))
            # User records only matter through the link index; summaries
            # are carried by the session info

        return root

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    def _apply_init(self, root: SessionNode, message: Message) -> None:
        if message.model:
            root.model = message.model
        if message.cwd:
            root.cwd = message.cwd
        if root.session_id == UNKNOWN_SESSION_ID and message.session_id:
            root.session_id = message.session_id
            root.id = f"session-{message.session_id}"
            root.display_text = session_display_text(message.session_id, root.timestamp)

    def _text_node(
        self, parent_id: str, text: str, source: Optional[SourceRef] = None
    ) -> TextNode:
        self._text_counter += 1
        return create_text_node(f"{parent_id}-text-{self._text_counter}", text, source)

    def _message_node(
        self, message: Message, message_id: str, position: int
    ) -> MessageNode:
        text_blocks = message.text_blocks
        tool_uses = unique_tool_uses(message.tool_uses)

        if text_blocks:
            preview = clean_text(text_blocks[0].text)
        elif tool_uses:
            preview = tool_summary(tool_uses)
        else:
            preview = ""

        node = create_message_node(
            message_id,
            preview,
            SourceRef(position),
            self.thresholds,
            role=message.role or "assistant",
        )

        for block_index, block in enumerate(message.content_blocks):
            if isinstance(block, ToolUseBlock):
                if block.id in self._emitted_tool_ids:
                    logger.debug("Skipping repeated tool use %s", block.id)
                    continue
                self._emitted_tool_ids.add(block.id)
                node.children.append(self._tool_node(block, SourceRef(position, block_index)))

        if not tool_uses and text_blocks:
            self._add_full_text(node, text_blocks[-1].text, position)

        return node

    def _add_full_text(self, node: MessageNode, text: str, position: int) -> None:
        if len(text) <= self.thresholds.full_text_min_chars:
            return
        chunks = split_text_into_chunks(clean_text(text), self.thresholds.text_chunk_size)
        for i, chunk in enumerate(chunks):
            prefix = FULL_TEXT_PREFIX if i == 0 else FULL_TEXT_CONTINUATION
            node.children.append(self._text_node(node.id, prefix + chunk, SourceRef(position)))

    def _tool_node(self, block: ToolUseBlock, source: SourceRef) -> ToolNode:
        node = create_tool_node(block, source, self.thresholds)

        location = self.index.find_result_location(block.id)
        if location is not None:
            result_message, block_index = location
            result_block = result_message.content_blocks[block_index]
            assert isinstance(result_block, ToolResultBlock)
            result_source = SourceRef(self._positions[id(result_message)], block_index)
            attach_result(node, self._result_node(block.name, result_block, result_source))

        return node

    def _result_node(
        self, tool_name: str, block: ToolResultBlock, source: SourceRef
    ) -> ResultNode:
        content = block.text
        try:
            classification = self.classifier.classify(block, tool_name)
        except Exception as e:
            logger.warning(
                "Classification failed for result of %s (%s); showing as text",
                tool_name,
                block.tool_use_id,
                exc_info=True,
            )
            classification = fallback_classification(e)

        use_rich = self.classifier.should_use_rich_display(content, classification)
        is_error = block.is_error or classification.category == ContentCategory.ERROR_OBJECT
        node = create_result_node(
            block.tool_use_id,
            content,
            classification,
            use_rich,
            source,
            self.thresholds,
            is_error=is_error,
        )
        if not use_rich:
            node.children.extend(self._inline_children(node.id, content, source))
        return node

    def _inline_children(
        self, parent_id: str, content: str, source: SourceRef
    ) -> list[TextNode]:
        """Text children for content small enough to show in the tree."""
        if not content.strip():
            return []

        t = self.thresholds
        body = strip_final_newline(content)
        lines = count_lines(body)
        chars = len(body)

        if lines <= t.inline_max_lines and chars <= t.inline_max_chars:
            return [self._text_node(parent_id, clean_text(body), source)]

        if lines <= t.compact_max_lines and chars <= t.compact_max_chars:
            shown = [line for line in body.split("\n") if line.strip()]
            children = [
                self._text_node(parent_id, clean_text(line), source)
                for line in shown[: t.compact_preview_lines]
            ]
            remaining = len(shown) - t.compact_preview_lines
            if remaining > 0:
                children.append(
                    self._text_node(parent_id, more_lines_text(remaining), source)
                )
            return children

        # Not rich but over the compact limits (e.g. exactly at the rich threshold)
        return [
            self._text_node(parent_id, chunk, source)
            for chunk in split_text_into_chunks(clean_text(body), t.text_chunk_size)
        ]


def attach_result(tool_node: ToolNode, result_node: ResultNode) -> None:
    """Attach the single Result child of a Tool node."""
    if tool_node.result is not None:
        raise TreeInvariantError(
            f"Tool node {tool_node.id} already has a result "
            f"({tool_node.result.tool_use_id}); refusing {result_node.tool_use_id}"
        )
    tool_node.children.append(result_node)
    tool_node.has_result = True


def build_tree(
    messages: list[Message],
    session_info: Optional[SessionInfo] = None,
    classifier: Optional[ContentClassifier] = None,
    config: Optional[TreeConfig] = None,
) -> SessionNode:
    """Build the session tree for a consolidated message list.

    Args:
        messages: Messages in stream order (normally from parse_lines)
        session_info: Seeds the root when the stream has no init record
        classifier: Classifier to use (its cache is reused across builds)
        config: Thresholds; defaults to the classifier's configuration

    Raises:
        TypeError: If ``messages`` is None
        TreeInvariantError: If a tool node would get a second result
    """
    if messages is None:
        raise TypeError("build_tree() requires a message list, got None")

    if config is None:
        config = classifier.config if classifier is not None else DEFAULT_CONFIG
    if classifier is None:
        classifier = ContentClassifier(config)

    t_start = time.time()
    with log_timing(lambda: f"Build tree ({len(messages)} messages)", t_start):
        return _TreeBuild(list(messages), config, classifier).run(session_info)
