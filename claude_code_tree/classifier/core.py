"""Content classification for tool inputs, tool results and prose.

Two tiers:

- Structural: the block type and the owning tool's name decide the category.
  Always confidence 1.0 and used whenever a content block is at hand.
- Heuristic: pattern detection over bare text for callers that have no
  structural context. Confidence tiers decide when to stop scanning.
"""

import json
import logging
import re
from typing import Any, Callable, Optional

from ..config import DEFAULT_CONFIG, CacheSettings, TreeConfig
from ..models import (
    ClassificationResult,
    ContentBlock,
    ContentCategory,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from ..utils import count_lines
from .cache import ClassificationCache
from .display_strategy import get_display_strategy, should_use_rich_display
from .json_detector import count_json_indicators, describe_json, robust_json_validation
from .tool_context import (
    detect_file_type,
    is_file_read_tool,
    is_mcp_tool,
    is_namespaced_tool,
    is_shell_tool,
    parse_namespaced_tool,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Error Patterns
# =============================================================================

# Checked in order, case-sensitively first and then ignoring case
ERROR_PATTERNS: tuple[tuple[str, str], ...] = (
    ("error_prefix", r"\A\s*Error:"),
    ("error_prefix", r"\A\s*error:"),
    ("exception", r"Exception"),
    ("traceback", r"Traceback"),
    ("file_not_found", r"File not found"),
    ("not_found", r"not found"),
    ("failed_to", r"failed to"),
    ("is_error_marker", r"[\"']?is_error[\"']?\s*[:=]\s*true\b"),
)

_CASE_SENSITIVE = tuple((name, re.compile(p)) for name, p in ERROR_PATTERNS)
_CASE_INSENSITIVE = tuple(
    (name, re.compile(p, re.IGNORECASE)) for name, p in ERROR_PATTERNS
)

# Subtype keywords, checked in order against lowercased text
ERROR_TYPE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("file_not_found", ("no such file", "file not found", "does not exist", "not found")),
    ("permission_denied", ("permission denied", "access denied", "eacces", "eperm")),
    ("syntax_error", ("syntax error", "syntaxerror", "parse error", "unexpected token")),
    ("timeout", ("timed out", "timeout")),
)

# Shell transcript shapes for the heuristic tier
_COMMAND_OUTPUT_PATTERNS = (
    re.compile(r"^\$ \S", re.MULTILINE),  # Prompt line
    re.compile(r"^total \d+$", re.MULTILINE),  # ls -l header
    re.compile(r"^[dl-][rwxsStT-]{9}[@+.]?\s", re.MULTILINE),  # ls -l entry
)


class ErrorMatch:
    """Which error pattern matched and whether case had to be ignored."""

    def __init__(self, name: str, pattern: str, case_sensitive: bool):
        self.name = name
        self.pattern = pattern
        self.case_sensitive = case_sensitive

    def __repr__(self) -> str:
        return f"ErrorMatch({self.name!r}, case_sensitive={self.case_sensitive})"


def detect_error_pattern(text: str) -> Optional[ErrorMatch]:
    """First error pattern matching ``text``, or None."""
    if not text:
        return None
    for name, regex in _CASE_SENSITIVE:
        if regex.search(text):
            return ErrorMatch(name, regex.pattern, True)
    for name, regex in _CASE_INSENSITIVE:
        if regex.search(text):
            return ErrorMatch(name, regex.pattern, False)
    return None


def infer_error_type(text: str) -> str:
    lowered = text.lower()
    for error_type, keywords in ERROR_TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return error_type
    return "generic"


def block_text(block: ContentBlock) -> str:
    """Text that classification and display work on for a block."""
    if isinstance(block, ToolUseBlock):
        return json.dumps(block.input, indent=2, ensure_ascii=False)
    if isinstance(block, ToolResultBlock):
        return block.text
    if isinstance(block, TextBlock):
        return block.text
    raise TypeError(f"Unsupported content block: {type(block).__name__}")


def fallback_classification(error: Exception) -> ClassificationResult:
    """GenericText stand-in for a block whose classification failed."""
    return ClassificationResult(
        category=ContentCategory.GENERIC_TEXT,
        display_strategy=get_display_strategy(ContentCategory.GENERIC_TEXT),
        confidence=0.0,
        metadata={
            "structured_source": False,
            "classification_error": f"{type(error).__name__}: {error}",
        },
    )


# =============================================================================
# Classifier
# =============================================================================


class ContentClassifier:
    """Assigns a ContentCategory and DisplayStrategy to content.

    Args:
        config: Thresholds, confidence tiers and cache settings
        cache: Explicit cache to use; by default one is created when
            ``config.cache.enabled`` is set
    """

    def __init__(
        self,
        config: TreeConfig = DEFAULT_CONFIG,
        cache: Optional[ClassificationCache] = None,
    ):
        self.config = config
        if cache is None and config.cache.enabled:
            cache = ClassificationCache(config.cache.max_size)
        self.cache = cache
        self._heuristics: tuple[Callable[[str], Optional[ClassificationResult]], ...] = (
            self._detect_strict_json,
            self._detect_error_text,
            self._detect_json_shape,
            self._detect_command_output,
            self._detect_file_content,
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def classify(
        self, block: ContentBlock, tool_name: Optional[str] = None
    ) -> ClassificationResult:
        """Classify a content block using its structure.

        ``tool_name`` is the name of the tool that produced a tool_result
        block; it is ignored for other block types.
        """
        text = block_text(block)

        key: Optional[str] = None
        if self.cache is not None:
            key = self.cache.fingerprint(
                "structural", *self._block_key_parts(block), tool_name or "", text
            )
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        result = self._classify_structural(block, tool_name, text)

        if key is not None and self.cache is not None:
            self.cache.put(key, result)
        return result

    def classify_text(
        self,
        content: str,
        tool_name: Optional[str] = None,
        context: Optional[str] = None,
    ) -> ClassificationResult:
        """Classify bare text.

        With a tool name (or ``context="input"``) the structural table is
        used as if the text were a tool result (or tool input). Without one
        the heuristic tier runs and confidence stays below 1.0.
        """
        if context == "input":
            return self._build(
                ContentCategory.TOOL_INPUT,
                content,
                {"tool_name": tool_name, "is_tool_input": True},
            )
        if tool_name:
            block = ToolResultBlock(tool_use_id="", content=content)
            return self.classify(block, tool_name)

        key: Optional[str] = None
        if self.cache is not None:
            key = self.cache.fingerprint("heuristic", content)
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        result = self._classify_heuristic(content)

        if key is not None and self.cache is not None:
            self.cache.put(key, result)
        return result

    def should_use_rich_display(
        self, content: str, result: Optional[ClassificationResult] = None
    ) -> bool:
        category = result.category if result is not None else None
        return should_use_rich_display(content, category, self.config.thresholds)

    def clear_cache(self) -> None:
        if self.cache is not None:
            self.cache.clear()

    # -------------------------------------------------------------------------
    # Structural tier
    # -------------------------------------------------------------------------

    @staticmethod
    def _block_key_parts(block: ContentBlock) -> tuple[Any, ...]:
        if isinstance(block, ToolUseBlock):
            return (block.type, block.id, block.name)
        if isinstance(block, ToolResultBlock):
            return (block.type, block.tool_use_id, block.is_error)
        return (block.type,)

    def _build(
        self,
        category: ContentCategory,
        text: str,
        metadata: dict[str, Any],
        confidence: float = 1.0,
        structural: bool = True,
    ) -> ClassificationResult:
        metadata = {k: v for k, v in metadata.items() if v is not None}
        metadata.update(
            structured_source=structural,
            content_length=len(text),
            line_count=count_lines(text),
        )
        return ClassificationResult(
            category=category,
            display_strategy=get_display_strategy(category),
            confidence=confidence,
            metadata=metadata,
        )

    def _classify_structural(
        self, block: ContentBlock, tool_name: Optional[str], text: str
    ) -> ClassificationResult:
        if isinstance(block, ToolUseBlock):
            return self._build(
                ContentCategory.TOOL_INPUT,
                text,
                {"tool_name": block.name, "tool_id": block.id, "is_tool_input": True},
            )

        if isinstance(block, TextBlock):
            return self._build(ContentCategory.GENERIC_TEXT, text, {"is_prose": True})

        if not isinstance(block, ToolResultBlock):
            raise TypeError(f"Unsupported content block: {type(block).__name__}")

        return self._classify_tool_result(block, tool_name, text)

    def _classify_tool_result(
        self, block: ToolResultBlock, tool_name: Optional[str], text: str
    ) -> ClassificationResult:
        thresholds = self.config.thresholds
        metadata: dict[str, Any] = {
            "tool_name": tool_name,
            "tool_use_id": block.tool_use_id or None,
            "is_tool_result": True,
        }

        error_match = None if block.is_error else detect_error_pattern(text)
        if block.is_error or error_match is not None:
            metadata["is_error_flag"] = block.is_error
            metadata["error_type"] = infer_error_type(text)
            if error_match is not None:
                metadata["error_pattern"] = error_match.name
            return self._build(ContentCategory.ERROR_OBJECT, text, metadata)

        if is_file_read_tool(tool_name):
            metadata["tool_type"] = "file_reader"
            metadata["file_type"] = detect_file_type(
                text, thresholds.file_type_sniff_chars
            )
            return self._build(ContentCategory.FILE_CONTENT, text, metadata)

        if is_shell_tool(tool_name):
            metadata["tool_type"] = "shell"
            return self._build(ContentCategory.COMMAND_OUTPUT, text, metadata)

        if tool_name and is_namespaced_tool(tool_name):
            namespaced = parse_namespaced_tool(tool_name)
            assert namespaced is not None
            metadata["tool_type"] = "mcp" if is_mcp_tool(tool_name) else "namespaced"
            metadata["server"] = namespaced.server
            detection = robust_json_validation(text, thresholds.json_parse_max_size)
            if detection.is_json:
                metadata["api_source"] = tool_name
                metadata.update(describe_json(detection.parsed))
                return self._build(ContentCategory.JSON_API_RESPONSE, text, metadata)
            return self._build(ContentCategory.GENERIC_TEXT, text, metadata)

        detection = robust_json_validation(text, thresholds.json_parse_max_size)
        if detection.is_json:
            metadata.update(describe_json(detection.parsed))
            return self._build(ContentCategory.JSON_API_RESPONSE, text, metadata)
        return self._build(ContentCategory.GENERIC_TEXT, text, metadata)

    # -------------------------------------------------------------------------
    # Heuristic tier
    # -------------------------------------------------------------------------

    def _classify_heuristic(self, text: str) -> ClassificationResult:
        settings = self.config.classification
        best: Optional[ClassificationResult] = None

        for heuristic in self._heuristics:
            result = heuristic(text)
            if result is None:
                continue
            if best is None or result.confidence > best.confidence:
                best = result
            if result.confidence >= settings.confidence_threshold:
                break

        if best is not None:
            return best
        return self._heuristic_result(
            ContentCategory.GENERIC_TEXT, text, "fallback", settings.confidence.fallback
        )

    def _heuristic_result(
        self,
        category: ContentCategory,
        text: str,
        heuristic: str,
        confidence: float,
        metadata: Optional[dict[str, Any]] = None,
    ) -> ClassificationResult:
        data = dict(metadata or {})
        data["heuristic"] = heuristic
        return self._build(category, text, data, confidence=confidence, structural=False)

    def _detect_strict_json(self, text: str) -> Optional[ClassificationResult]:
        detection = robust_json_validation(
            text, self.config.thresholds.json_parse_max_size
        )
        if not detection.is_json:
            return None
        facts = describe_json(detection.parsed)
        category = (
            ContentCategory.ERROR_OBJECT
            if facts.get("has_error_key")
            else ContentCategory.JSON_API_RESPONSE
        )
        return self._heuristic_result(
            category, text, "strict_json", self.config.classification.confidence.high, facts
        )

    def _detect_error_text(self, text: str) -> Optional[ClassificationResult]:
        match = detect_error_pattern(text)
        if match is None:
            return None
        tiers = self.config.classification.confidence
        return self._heuristic_result(
            ContentCategory.ERROR_OBJECT,
            text,
            "error_pattern",
            tiers.medium if match.case_sensitive else tiers.low,
            {"error_pattern": match.name, "error_type": infer_error_type(text)},
        )

    def _detect_json_shape(self, text: str) -> Optional[ClassificationResult]:
        indicators = count_json_indicators(text)
        if indicators < 2:
            return None
        return self._heuristic_result(
            ContentCategory.JSON_API_RESPONSE,
            text,
            "json_shape",
            self.config.classification.confidence.low,
            {"json_indicators": indicators, "is_json": False},
        )

    def _detect_command_output(self, text: str) -> Optional[ClassificationResult]:
        if not any(p.search(text) for p in _COMMAND_OUTPUT_PATTERNS):
            return None
        return self._heuristic_result(
            ContentCategory.COMMAND_OUTPUT,
            text,
            "command_shape",
            self.config.classification.confidence.low,
        )

    def _detect_file_content(self, text: str) -> Optional[ClassificationResult]:
        file_type = detect_file_type(text, self.config.thresholds.file_type_sniff_chars)
        # "key: value" prose sniffs as config; not enough to call it a file
        if file_type in ("text", "config"):
            return None
        return self._heuristic_result(
            ContentCategory.FILE_CONTENT,
            text,
            "file_sniff",
            self.config.classification.confidence.low,
            {"file_type": file_type},
        )


_stateless_classifier = ContentClassifier(
    TreeConfig(cache=CacheSettings(enabled=False))
)


def classify(block: ContentBlock, tool_name: Optional[str] = None) -> ClassificationResult:
    """Classify one content block with default settings and no cache."""
    return _stateless_classifier.classify(block, tool_name)
