"""Factory for creating Message and ContentBlock instances from raw data.

This module creates typed model instances from stream-json records:
- Message for each record kind (system, assistant, user, result, summary)
- ContentBlock subclasses (Text, ToolUse, ToolResult)

Block-level problems never abort a record: the offending block is dropped
and a SchemaError is appended to the caller's ``issues`` list.
"""

import logging
from typing import Any, Callable, Optional, Sequence, cast

from pydantic import BaseModel, ValidationError

from ..errors import MissingFieldError, ParseError, SchemaError
from ..models import (
    ContentBlock,
    Message,
    MessageKind,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Content Block Registry
# =============================================================================

# Maps content type strings to their model classes
BLOCK_CREATORS: dict[str, type[BaseModel]] = {
    "text": TextBlock,
    "tool_use": ToolUseBlock,
    "tool_result": ToolResultBlock,
}

# Fields that must be present for each block type
REQUIRED_BLOCK_FIELDS: dict[str, Sequence[str]] = {
    "text": ("text",),
    "tool_use": ("id", "name"),
    "tool_result": ("tool_use_id",),
}

# Content types allowed in each context
USER_BLOCK_TYPES: Sequence[str] = ("text", "tool_result")
ASSISTANT_BLOCK_TYPES: Sequence[str] = ("text", "tool_use")

# Record types that carry no transcript content
SKIPPED_RECORD_TYPES: Sequence[str] = (
    "file-history-snapshot",
    "queue-operation",
    "progress",
)


def _validation_summary(error: ValidationError) -> str:
    """First validation problem as 'field: message'."""
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg', 'invalid value')}"


# =============================================================================
# Content Block Creation
# =============================================================================


def create_content_block(
    item_data: dict[str, Any],
    issues: list[ParseError],
    type_filter: Optional[Sequence[str]] = None,
) -> Optional[ContentBlock]:
    """Create a ContentBlock from raw data using the registry.

    Args:
        item_data: The raw dictionary data
        issues: Collector for block-level schema errors
        type_filter: Block types allowed in this context, or None for all

    Returns:
        The block, or None if it is unsupported here or malformed
    """
    block_type = item_data.get("type")
    model_class = BLOCK_CREATORS.get(block_type) if block_type else None

    if model_class is None or (type_filter is not None and block_type not in type_filter):
        # thinking, image and other block kinds are not part of the tree
        logger.debug("Skipping content block of type %r", block_type)
        return None

    for field_name in REQUIRED_BLOCK_FIELDS[block_type]:
        if item_data.get(field_name) is None:
            issues.append(
                MissingFieldError(field_name, context=f"{block_type} block")
            )
            return None

    data = dict(item_data)
    if block_type == "tool_result":
        if data.get("content") is None:
            data["content"] = ""
        data["is_error"] = bool(data.get("is_error"))
    elif block_type == "tool_use" and data.get("input") is None:
        data["input"] = {}

    try:
        return cast(ContentBlock, model_class.model_validate(data))
    except ValidationError as e:
        issues.append(
            SchemaError(f"Invalid {block_type} block: {_validation_summary(e)}")
        )
        return None


def create_message_content(
    content_data: Any,
    issues: list[ParseError],
    type_filter: Optional[Sequence[str]] = None,
) -> list[ContentBlock]:
    """Create a list of ContentBlocks from message content data.

    Always returns a list for consistent downstream handling. String content
    is wrapped in a TextBlock.
    """
    if content_data is None:
        return []
    if isinstance(content_data, str):
        return [TextBlock(text=content_data)]
    if not isinstance(content_data, list):
        issues.append(
            SchemaError(f"Unsupported content of type {type(content_data).__name__}")
        )
        return []

    blocks: list[ContentBlock] = []
    for item in cast(list[Any], content_data):
        if isinstance(item, dict):
            block = create_content_block(
                cast(dict[str, Any], item), issues, type_filter
            )
            if block is not None:
                blocks.append(block)
        elif isinstance(item, str):
            blocks.append(TextBlock(text=item))
    return blocks


# =============================================================================
# Message Creation
# =============================================================================


def _envelope_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Fields shared by every record kind.

    The session id appears as ``session_id`` in stream-json output and as
    ``sessionId`` in conversation files; both map to ``session_id``.
    """
    session_id = data.get("session_id")
    if session_id is None:
        session_id = data.get("sessionId")
    return {
        "subtype": data.get("subtype"),
        "session_id": session_id,
        "parent_tool_use_id": data.get("parent_tool_use_id"),
        "uuid": data.get("uuid"),
        "timestamp": data.get("timestamp"),
        "cwd": data.get("cwd"),
        "version": data.get("version"),
        "git_branch": data.get("gitBranch"),
    }


def _message_body(data: dict[str, Any]) -> dict[str, Any]:
    body = data.get("message")
    if body is None:
        raise MissingFieldError("message")
    if not isinstance(body, dict):
        raise SchemaError("Field 'message' is not an object")
    return cast(dict[str, Any], body)


def _create_assistant_message(
    data: dict[str, Any], issues: list[ParseError]
) -> Message:
    body = _message_body(data)
    return Message(
        kind=MessageKind.ASSISTANT,
        message_id=body.get("id"),
        role=body.get("role") or "assistant",
        model=body.get("model"),
        content_blocks=create_message_content(
            body.get("content"), issues, ASSISTANT_BLOCK_TYPES
        ),
        stop_reason=body.get("stop_reason"),
        usage=body.get("usage"),
        **_envelope_fields(data),
    )


def _create_user_message(data: dict[str, Any], issues: list[ParseError]) -> Message:
    body = _message_body(data)
    return Message(
        kind=MessageKind.USER,
        role=body.get("role") or "user",
        content_blocks=create_message_content(
            body.get("content"), issues, USER_BLOCK_TYPES
        ),
        **_envelope_fields(data),
    )


def _create_system_message(
    data: dict[str, Any], issues: list[ParseError]
) -> Message:
    return Message(
        kind=MessageKind.SYSTEM,
        model=data.get("model"),
        tools=data.get("tools"),
        **_envelope_fields(data),
    )


def _create_result_message(
    data: dict[str, Any], issues: list[ParseError]
) -> Message:
    cost = data.get("total_cost_usd")
    if cost is None:
        cost = data.get("cost_usd")
    return Message(
        kind=MessageKind.RESULT,
        total_cost_usd=cost,
        duration_ms=data.get("duration_ms"),
        num_turns=data.get("num_turns"),
        is_error=data.get("is_error"),
        result=data.get("result"),
        **_envelope_fields(data),
    )


def _create_summary_message(
    data: dict[str, Any], issues: list[ParseError]
) -> Message:
    return Message(
        kind=MessageKind.SUMMARY,
        summary=data.get("summary"),
        **_envelope_fields(data),
    )


# Registry mapping record kinds to their creator functions
ENTRY_CREATORS: dict[
    MessageKind, Callable[[dict[str, Any], list[ParseError]], Message]
] = {
    MessageKind.ASSISTANT: _create_assistant_message,
    MessageKind.USER: _create_user_message,
    MessageKind.SYSTEM: _create_system_message,
    MessageKind.RESULT: _create_result_message,
    MessageKind.SUMMARY: _create_summary_message,
}


def create_message(
    data: dict[str, Any], issues: Optional[list[ParseError]] = None
) -> Optional[Message]:
    """Create a Message from a decoded JSON object.

    Uses a registry-based dispatch on the ``type`` discriminator (``kind`` is
    accepted as an alias).

    Args:
        data: Dictionary parsed from JSON
        issues: Collector for block-level schema errors

    Returns:
        The Message, or None for internal record types that are skipped

    Raises:
        MissingFieldError: If the discriminator is absent
        SchemaError: If the discriminator is unknown or the record is malformed
    """
    if issues is None:
        issues = []

    kind_value = data.get("type")
    if kind_value is None:
        kind_value = data.get("kind")
    if kind_value is None:
        raise MissingFieldError("type")

    if kind_value in SKIPPED_RECORD_TYPES:
        logger.debug("Skipping internal record type %r", kind_value)
        return None

    try:
        kind = MessageKind(kind_value)
    except ValueError:
        raise SchemaError(f"Unknown message type: {kind_value!r}") from None

    try:
        return ENTRY_CREATORS[kind](data, issues)
    except ValidationError as e:
        raise SchemaError(
            f"Invalid {kind.value} record: {_validation_summary(e)}"
        ) from e
