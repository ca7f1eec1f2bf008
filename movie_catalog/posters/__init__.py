"""Poster asset storage engine."""
from movie_catalog.posters.models import ALLOWED_POSTER_TYPES, MAX_POSTER_BYTES, PosterUpload
from movie_catalog.posters.storage import (
    InMemoryPosterStorage,
    PosterStorage,
    R2PosterStorage,
    extract_key,
    generate_unique_key,
    validate_poster,
)

__all__ = [
    "ALLOWED_POSTER_TYPES",
    "MAX_POSTER_BYTES",
    "PosterUpload",
    "PosterStorage",
    "InMemoryPosterStorage",
    "R2PosterStorage",
    "extract_key",
    "generate_unique_key",
    "validate_poster",
]
