"""Configuration for classification thresholds and tree building.

Defaults are the values the rendering layer is built around; override them
only for experiments. A few settings can also come from the environment:

- ``CLAUDE_CODE_TREE_CACHE_SIZE``: maximum cached classifications
- ``CLAUDE_CODE_TREE_NO_CACHE``: set to 1/true/yes to disable the cache
"""

import os
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

TRUTHY_VALUES = ("1", "true", "yes")


class Thresholds(BaseModel):
    """Size thresholds used by the classifier and tree builder."""

    # Rich display: anything above these is shown via popup
    rich_display_lines: int = Field(default=5, ge=1)
    rich_display_chars: int = Field(default=200, ge=1)

    # Single inline child
    inline_max_lines: int = Field(default=2, ge=1)
    inline_max_chars: int = Field(default=100, ge=1)

    # Up to two inline children plus a "more lines" marker
    compact_max_lines: int = Field(default=4, ge=1)
    compact_max_chars: int = Field(default=200, ge=1)
    compact_preview_lines: int = Field(default=2, ge=1)

    # Content sniffing and parsing limits
    file_type_sniff_chars: int = Field(default=200, ge=1)
    json_parse_max_size: int = Field(default=1024 * 1024, ge=1)

    # Display text limits
    preview_max_chars: int = Field(default=80, ge=4)
    result_preview_max_chars: int = Field(default=60, ge=4)
    command_arg_max_chars: int = Field(default=30, ge=4)
    text_chunk_size: int = Field(default=120, ge=8)
    full_text_min_chars: int = Field(default=150, ge=0)


class ConfidenceTiers(BaseModel):
    """Confidence values assigned by the heuristic classifier."""

    high: float = Field(default=0.9, ge=0.0, lt=1.0)
    medium: float = Field(default=0.7, ge=0.0, lt=1.0)
    low: float = Field(default=0.5, ge=0.0, lt=1.0)
    fallback: float = Field(default=0.1, ge=0.0, lt=1.0)


class ClassificationSettings(BaseModel):
    confidence: ConfidenceTiers = ConfidenceTiers()
    # Heuristic scanning stops at the first result at or above this value
    confidence_threshold: float = Field(default=0.7, ge=0.0, le=1.0)


class CacheSettings(BaseModel):
    enabled: bool = True
    max_size: int = Field(default=1000, ge=1)


class TreeConfig(BaseModel):
    """Top-level configuration object."""

    thresholds: Thresholds = Thresholds()
    classification: ClassificationSettings = ClassificationSettings()
    cache: CacheSettings = CacheSettings()


def load_config(
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> TreeConfig:
    """Build a TreeConfig from defaults, optional overrides and the environment.

    Args:
        overrides: Nested mapping in the shape of TreeConfig
        environ: Environment to read (defaults to os.environ)

    Raises:
        pydantic.ValidationError: If any value is out of range
    """
    env = os.environ if environ is None else environ
    data: dict[str, Any] = dict(overrides or {})

    cache_data: dict[str, Any] = dict(data.get("cache") or {})
    cache_size = env.get("CLAUDE_CODE_TREE_CACHE_SIZE")
    if cache_size:
        cache_data["max_size"] = cache_size
    if env.get("CLAUDE_CODE_TREE_NO_CACHE", "").lower() in TRUTHY_VALUES:
        cache_data["enabled"] = False
    if cache_data:
        data["cache"] = cache_data

    return TreeConfig.model_validate(data)


DEFAULT_CONFIG = TreeConfig()
