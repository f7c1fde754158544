"""Bounded memo of classification results.

Owned by a ContentClassifier; nothing here is process-wide. Results handed
out are copies, so callers can never corrupt a cached entry.
"""

import copy
import hashlib
from collections import OrderedDict
from typing import Optional

from ..models import ClassificationResult


class ClassificationCache:
    """Least-recently-used map from content fingerprint to result."""

    def __init__(self, max_size: int = 1000):
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.max_size = max_size
        self._entries: "OrderedDict[str, ClassificationResult]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def fingerprint(*parts: object) -> str:
        """Stable key for a block's type, context and text."""
        digest = hashlib.sha256()
        for part in parts:
            digest.update(str(part).encode("utf-8", errors="replace"))
            digest.update(b"\x00")
        return digest.hexdigest()

    def get(self, key: str) -> Optional[ClassificationResult]:
        result = self._entries.get(key)
        if result is None:
            self.misses += 1
            return None
        self.hits += 1
        self._entries.move_to_end(key)
        return copy.deepcopy(result)

    def put(self, key: str, result: ClassificationResult) -> None:
        self._entries[key] = copy.deepcopy(result)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
