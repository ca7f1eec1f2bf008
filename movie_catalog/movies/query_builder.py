"""Translate a MovieQuery into a MongoDB filter, sort spec and page window.

Title search is an unanchored, case-insensitive regex built from the raw
search term: pattern metacharacters in the term are interpreted by the
server ("s.n" matches "Sin City"). Genre search is an anchored,
case-insensitive match against the escaped term, so it behaves as
case-insensitive equality and metacharacters only match themselves.

Sorting relies on MongoDB's BSON ordering: documents with a null or missing
Rating sort before every number, so they come first ascending and last
descending. Titles compare by code point (no collation).
"""
from __future__ import annotations

import re
from typing import Any, Dict, List, Tuple

import pymongo

from movie_catalog.movies.models import MovieQuery, MovieSortBy, SortDirection

TITLE_FIELD = "Title"
GENRE_FIELD = "Genre"
RATING_FIELD = "Rating"

_SORT_FIELDS = {
    MovieSortBy.TITLE: TITLE_FIELD,
    MovieSortBy.RATING: RATING_FIELD,
}


def title_pattern(search_term: str) -> str:
    return search_term


def genre_pattern(genre: str) -> str:
    return f"^{re.escape(genre)}$"


def build_filter(query: MovieQuery) -> Dict[str, Any]:
    filters: List[Dict[str, Any]] = []
    if query.has_search_term:
        filters.append({TITLE_FIELD: {"$regex": title_pattern(query.search_term), "$options": "i"}})
    if query.has_genre:
        filters.append({GENRE_FIELD: {"$regex": genre_pattern(query.genre), "$options": "i"}})

    if not filters:
        return {}
    if len(filters) == 1:
        return filters[0]
    return {"$and": filters}


def build_sort(query: MovieQuery) -> List[Tuple[str, int]]:
    field = _SORT_FIELDS.get(query.sort_by, TITLE_FIELD)
    direction = pymongo.DESCENDING if query.sort_direction == SortDirection.DESCENDING else pymongo.ASCENDING
    return [(field, direction)]


def build_page(query: MovieQuery) -> Tuple[int, int]:
    """Return (skip, limit) for the requested page."""
    return (query.page - 1) * query.page_size, query.page_size
