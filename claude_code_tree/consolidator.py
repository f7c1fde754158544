"""Merge assistant records that belong to one logical message.

Claude Code streams a single assistant turn as several JSONL lines, one per
content chunk, all carrying the same ``message.id``. The consolidator folds
them back into one Message whose content blocks are in arrival order.
"""

from .models import Message, MessageKind


def consolidate_messages(raw_messages: list[Message]) -> list[Message]:
    """Consolidate assistant messages that share a message id.

    The first record with a given id is deep-copied (the caller's input is
    never mutated) and keeps its position; later records with that id only
    contribute their content blocks. Everything else passes through as is.

    Re-consolidating an already consolidated list returns an equal list.
    """
    by_id: dict[str, Message] = {}
    consolidated: list[Message] = []

    for message in raw_messages:
        if message.kind != MessageKind.ASSISTANT or not message.message_id:
            consolidated.append(message)
            continue

        existing = by_id.get(message.message_id)
        if existing is None:
            merged = message.model_copy(deep=True)
            by_id[message.message_id] = merged
            consolidated.append(merged)
        else:
            existing.content_blocks.extend(
                block.model_copy(deep=True) for block in message.content_blocks
            )

    return consolidated
