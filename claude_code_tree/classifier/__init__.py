"""Content classification: decide how tool inputs and outputs are displayed."""

from .cache import ClassificationCache
from .core import (
    ContentClassifier,
    block_text,
    classify,
    detect_error_pattern,
    fallback_classification,
    infer_error_type,
)
from .display_strategy import get_display_strategy, should_use_rich_display
from .json_detector import robust_json_validation
from .tool_context import (
    detect_file_type,
    is_file_read_tool,
    is_namespaced_tool,
    is_shell_tool,
)

__all__ = [
    "ClassificationCache",
    "ContentClassifier",
    "block_text",
    "classify",
    "detect_error_pattern",
    "detect_file_type",
    "fallback_classification",
    "get_display_strategy",
    "infer_error_type",
    "is_file_read_tool",
    "is_namespaced_tool",
    "is_shell_tool",
    "robust_json_validation",
    "should_use_rich_display",
]
