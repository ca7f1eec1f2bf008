"""Movie record repositories: abstract interface, in-memory and MongoDB."""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from movie_catalog.common.errors import RepositoryError
from movie_catalog.config import runtime_config
from movie_catalog.movies.models import MovieQuery, MovieRecord, MovieSortBy, SortDirection
from movie_catalog.movies.query_builder import (
    GENRE_FIELD,
    RATING_FIELD,
    TITLE_FIELD,
    build_filter,
    build_page,
    build_sort,
    genre_pattern,
    title_pattern,
)

logger = logging.getLogger(__name__)

COLLECTION_NAME = "Movies"
POSTER_IMAGE_FIELD = "PosterImage"
POSTER_IMAGE_KEY_FIELD = "PosterImageKey"


class MovieRepository:
    """Abstract repository for movie records."""

    def find_page(self, query: MovieQuery) -> Tuple[List[MovieRecord], int]:
        """Return one page of matching records and the total match count."""
        raise NotImplementedError

    def get(self, movie_id: str) -> Optional[MovieRecord]:
        raise NotImplementedError

    def create(self, record: MovieRecord) -> MovieRecord:
        raise NotImplementedError

    def replace(self, movie_id: str, record: MovieRecord) -> Tuple[Optional[MovieRecord], bool]:
        """Full replace keyed by id. Returns (stored record or None, was_modified)."""
        raise NotImplementedError

    def delete(self, movie_id: str) -> bool:
        raise NotImplementedError


def to_document(record: MovieRecord) -> Dict[str, Any]:
    # Every field is written, nulls included, so an identical replace is a no-op for the server.
    return {
        TITLE_FIELD: record.title,
        GENRE_FIELD: record.genre,
        RATING_FIELD: record.rating,
        POSTER_IMAGE_FIELD: record.poster_image,
        POSTER_IMAGE_KEY_FIELD: record.poster_image_key,
    }


def from_document(doc: Dict[str, Any]) -> MovieRecord:
    return MovieRecord(
        id=str(doc["_id"]),
        title=doc.get(TITLE_FIELD) or "",
        genre=doc.get(GENRE_FIELD),
        rating=doc.get(RATING_FIELD),
        poster_image=doc.get(POSTER_IMAGE_FIELD),
        poster_image_key=doc.get(POSTER_IMAGE_KEY_FIELD),
    )


class InMemoryMovieRepository(MovieRepository):
    """Dict-backed repository with the same matching and ordering rules as MongoDB."""

    def __init__(self) -> None:
        self.movies: Dict[str, MovieRecord] = {}

    def _matches(self, record: MovieRecord, query: MovieQuery) -> bool:
        try:
            if query.has_search_term and not re.search(title_pattern(query.search_term), record.title, re.IGNORECASE):
                return False
        except re.error as exc:
            raise RepositoryError(f"invalid search pattern: {exc}", exc) from exc
        if query.has_genre:
            if record.genre is None or not re.search(genre_pattern(query.genre), record.genre, re.IGNORECASE):
                return False
        return True

    @staticmethod
    def _sort_key(query: MovieQuery):
        if query.sort_by == MovieSortBy.RATING:
            # null sorts below every number
            return lambda m: (0, 0) if m.rating is None else (1, m.rating)
        return lambda m: m.title

    def find_page(self, query: MovieQuery) -> Tuple[List[MovieRecord], int]:
        results = [m for m in self.movies.values() if self._matches(m, query)]
        results = sorted(
            results,
            key=self._sort_key(query),
            reverse=query.sort_direction == SortDirection.DESCENDING,
        )
        skip, limit = build_page(query)
        return [m.model_copy() for m in results[skip:skip + limit]], len(results)

    def get(self, movie_id: str) -> Optional[MovieRecord]:
        record = self.movies.get(movie_id)
        return record.model_copy() if record else None

    def create(self, record: MovieRecord) -> MovieRecord:
        stored = record.model_copy(update={"id": str(ObjectId())})
        self.movies[stored.id] = stored
        return stored.model_copy()

    def replace(self, movie_id: str, record: MovieRecord) -> Tuple[Optional[MovieRecord], bool]:
        previous = self.movies.get(movie_id)
        if previous is None:
            return None, False
        stored = record.model_copy(update={"id": movie_id})
        self.movies[movie_id] = stored
        return stored.model_copy(), previous.model_dump() != stored.model_dump()

    def delete(self, movie_id: str) -> bool:
        return self.movies.pop(movie_id, None) is not None


def _object_id(movie_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(movie_id)
    except (InvalidId, TypeError):
        return None


class MongoMovieRepository(MovieRepository):
    """MongoDB-backed repository over the Movies collection."""

    def __init__(self, collection: Optional[Any] = None, client: Optional[MongoClient] = None) -> None:
        if collection is None:
            if client is None:
                uri = runtime_config.get_mongodb_connection_string()
                if not uri:
                    raise RuntimeError(
                        "MONGODB_CONNECTION_STRING config missing. "
                        "Set it to a MongoDB URI or use MOVIES_BACKEND=memory."
                    )
                client = MongoClient(uri, timeoutMS=runtime_config.get_mongodb_timeout_ms())
            collection = client[runtime_config.get_mongodb_database_name()][COLLECTION_NAME]
        self._collection = collection

    def _fail(self, action: str, exc: PyMongoError) -> RepositoryError:
        logger.error("MongoDB %s failed: %s", action, exc)
        return RepositoryError(f"database {action} failed: {exc}", exc)

    def find_page(self, query: MovieQuery) -> Tuple[List[MovieRecord], int]:
        filter_ = build_filter(query)
        skip, limit = build_page(query)
        try:
            total = self._collection.count_documents(filter_)
            cursor = self._collection.find(filter_).sort(build_sort(query)).skip(skip).limit(limit)
            docs = list(cursor)
        except PyMongoError as exc:
            raise self._fail("query", exc) from exc
        return [from_document(d) for d in docs], total

    def get(self, movie_id: str) -> Optional[MovieRecord]:
        oid = _object_id(movie_id)
        if oid is None:
            return None
        try:
            doc = self._collection.find_one({"_id": oid})
        except PyMongoError as exc:
            raise self._fail("lookup", exc) from exc
        return from_document(doc) if doc else None

    def create(self, record: MovieRecord) -> MovieRecord:
        doc = to_document(record)
        try:
            result = self._collection.insert_one(doc)
        except PyMongoError as exc:
            raise self._fail("insert", exc) from exc
        return record.model_copy(update={"id": str(result.inserted_id)})

    def replace(self, movie_id: str, record: MovieRecord) -> Tuple[Optional[MovieRecord], bool]:
        oid = _object_id(movie_id)
        if oid is None:
            return None, False
        try:
            result = self._collection.replace_one({"_id": oid}, to_document(record))
        except PyMongoError as exc:
            raise self._fail("replace", exc) from exc
        if not result.acknowledged or result.matched_count == 0:
            return None, False
        return record.model_copy(update={"id": movie_id}), result.modified_count > 0

    def delete(self, movie_id: str) -> bool:
        oid = _object_id(movie_id)
        if oid is None:
            return False
        try:
            result = self._collection.delete_one({"_id": oid})
        except PyMongoError as exc:
            raise self._fail("delete", exc) from exc
        return result.acknowledged and result.deleted_count > 0
