"""Index linking tool uses to the messages that carry their results."""

from dataclasses import dataclass, field
from typing import Optional

from .models import Message, MessageKind, ToolResultBlock, ToolUseBlock


@dataclass
class ToolLinkIndex:
    """Lookup tables built in a single pass over the message list.

    A tool use without a result, or a result whose tool use never appeared,
    is a normal state (e.g. a truncated or still-streaming transcript).
    """

    # tool_use id -> assistant message that emitted it
    tool_uses: dict[str, Message] = field(default_factory=lambda: {})
    # tool_use id -> user message carrying the tool_result
    tool_results: dict[str, Message] = field(default_factory=lambda: {})

    def has_result(self, tool_use_id: str) -> bool:
        return tool_use_id in self.tool_results

    def find_tool_use(self, tool_use_id: str) -> Optional[ToolUseBlock]:
        message = self.tool_uses.get(tool_use_id)
        if message is None:
            return None
        for block in message.tool_uses:
            if block.id == tool_use_id:
                return block
        return None

    def find_result(self, tool_use_id: str) -> Optional[ToolResultBlock]:
        """The tool_result block answering ``tool_use_id``, if any."""
        message = self.tool_results.get(tool_use_id)
        if message is None:
            return None
        for block in message.tool_results:
            if block.tool_use_id == tool_use_id:
                return block
        return None

    def find_result_location(self, tool_use_id: str) -> Optional[tuple[Message, int]]:
        """The result-carrying message and the block's index within it."""
        message = self.tool_results.get(tool_use_id)
        if message is None:
            return None
        for index, block in enumerate(message.content_blocks):
            if isinstance(block, ToolResultBlock) and block.tool_use_id == tool_use_id:
                return message, index
        return None

    def tool_name_for(self, tool_use_id: str) -> Optional[str]:
        block = self.find_tool_use(tool_use_id)
        return block.name if block is not None else None

    @property
    def orphan_result_ids(self) -> list[str]:
        """Result ids whose tool use never appeared, in insertion order."""
        return [key for key in self.tool_results if key not in self.tool_uses]

    @property
    def pending_tool_use_ids(self) -> list[str]:
        """Tool use ids still waiting for a result, in insertion order."""
        return [key for key in self.tool_uses if key not in self.tool_results]


def build_tool_index(messages: list[Message]) -> ToolLinkIndex:
    """Build the tool use / tool result index for a message list."""
    index = ToolLinkIndex()

    for message in messages:
        if message.kind == MessageKind.ASSISTANT:
            for block in message.tool_uses:
                index.tool_uses[block.id] = message
        elif message.kind == MessageKind.USER:
            for block in message.tool_results:
                index.tool_results[block.tool_use_id] = message

    return index
