"""Poster upload payloads and limits."""
from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet

MAX_POSTER_BYTES = 5 * 1024 * 1024
ALLOWED_POSTER_TYPES: FrozenSet[str] = frozenset({"image/jpeg", "image/png", "image/webp"})


@dataclass
class PosterUpload:
    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)
