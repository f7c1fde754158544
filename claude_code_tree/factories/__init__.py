"""Factory modules for creating typed objects from raw data."""

from .message_factory import (
    # Registries and constants
    ASSISTANT_BLOCK_TYPES,
    BLOCK_CREATORS,
    ENTRY_CREATORS,
    SKIPPED_RECORD_TYPES,
    USER_BLOCK_TYPES,
    # Content block creation
    create_content_block,
    create_message_content,
    # Message creation
    create_message,
)

__all__ = [
    # Registries and constants
    "ASSISTANT_BLOCK_TYPES",
    "BLOCK_CREATORS",
    "ENTRY_CREATORS",
    "SKIPPED_RECORD_TYPES",
    "USER_BLOCK_TYPES",
    # Content block creation
    "create_content_block",
    "create_message_content",
    # Message creation
    "create_message",
]
