"""Display strategy lookup and the rich-display decision."""

from typing import Optional

from ..config import Thresholds
from ..models import ContentCategory, DisplayStrategy
from ..utils import count_lines

STRATEGY_BY_CATEGORY: dict[ContentCategory, DisplayStrategy] = {
    ContentCategory.TOOL_INPUT: DisplayStrategy.JSON_POPUP_ALWAYS,
    ContentCategory.JSON_API_RESPONSE: DisplayStrategy.JSON_POPUP_WITH_FOLDING,
    ContentCategory.ERROR_OBJECT: DisplayStrategy.ERROR_POPUP_HIGHLIGHTED,
    ContentCategory.FILE_CONTENT: DisplayStrategy.SYNTAX_HIGHLIGHTED_POPUP,
    ContentCategory.COMMAND_OUTPUT: DisplayStrategy.TERMINAL_STYLE_POPUP,
    ContentCategory.GENERIC_TEXT: DisplayStrategy.ADAPTIVE_INLINE_OR_POPUP,
}

# Always shown in a popup, whatever their size.
# File content and command output follow the size threshold like plain text,
# so a one-line file read still renders inline.
ALWAYS_RICH_CATEGORIES = frozenset(
    {ContentCategory.JSON_API_RESPONSE, ContentCategory.ERROR_OBJECT}
)


def get_display_strategy(category: ContentCategory) -> DisplayStrategy:
    return STRATEGY_BY_CATEGORY.get(category, DisplayStrategy.ADAPTIVE_INLINE_OR_POPUP)


def exceeds_rich_threshold(content: str, thresholds: Thresholds) -> bool:
    """True when content is larger than the inline limits (strictly above)."""
    return (
        count_lines(content) > thresholds.rich_display_lines
        or len(content) > thresholds.rich_display_chars
    )


def should_use_rich_display(
    content: str,
    category: Optional[ContentCategory] = None,
    thresholds: Optional[Thresholds] = None,
) -> bool:
    """Whether content should be presented in a popup instead of inline."""
    if category in ALWAYS_RICH_CATEGORIES:
        return True
    return exceeds_rich_threshold(content, thresholds or Thresholds())
