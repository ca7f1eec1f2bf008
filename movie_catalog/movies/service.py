"""Catalog service: keeps movie records and their poster assets in step.

There is no transaction spanning the record store and the poster store:
- create uploads the poster first; if the insert then fails the uploaded
  object is left behind (logged, not rolled back).
- update deletes the old poster before uploading the new one; a failed
  delete aborts the update with the record unchanged.
- delete removes the record first and the poster afterwards; a failed
  poster delete propagates even though the record is already gone.
"""
from __future__ import annotations

import logging
from typing import Optional, Tuple

from movie_catalog.common.errors import PosterStorageError, RepositoryError
from movie_catalog.config import runtime_config
from movie_catalog.movies.models import (
    MovieForm,
    MovieQuery,
    MovieRecord,
    MovieResponse,
    PaginatedResponse,
)
from movie_catalog.movies.repository import InMemoryMovieRepository, MongoMovieRepository, MovieRepository
from movie_catalog.posters.models import PosterUpload
from movie_catalog.posters.storage import (
    InMemoryPosterStorage,
    PosterStorage,
    R2PosterStorage,
    extract_key,
    validate_poster,
)

logger = logging.getLogger(__name__)


class MovieService:
    def __init__(self, repo: Optional[MovieRepository] = None, storage: Optional[PosterStorage] = None) -> None:
        self.repo = repo or self._default_repo()
        self.storage = storage or self._default_storage()

    def _default_repo(self) -> MovieRepository:
        backend = runtime_config.get_movies_backend()
        if backend == "memory":
            return InMemoryMovieRepository()
        if backend == "mongo":
            return MongoMovieRepository()
        raise RuntimeError(f"MOVIES_BACKEND must be 'mongo' or 'memory'. Got: '{backend}'")

    def _default_storage(self) -> PosterStorage:
        backend = runtime_config.get_poster_backend()
        if backend == "memory":
            return InMemoryPosterStorage()
        if backend == "r2":
            return R2PosterStorage()
        raise RuntimeError(f"POSTER_BACKEND must be 'r2' or 'memory'. Got: '{backend}'")

    def _attach_poster(self, record: MovieRecord, poster: PosterUpload) -> None:
        url = self.storage.upload(poster)
        record.poster_image = url
        record.poster_image_key = extract_key(url)

    def list_movies(self, query: MovieQuery) -> PaginatedResponse:
        records, total = self.repo.find_page(query)
        return PaginatedResponse.build(
            [MovieResponse.from_record(r) for r in records],
            current_page=query.page,
            page_size=query.page_size,
            total_items=total,
        )

    def get_movie(self, movie_id: str) -> Optional[MovieResponse]:
        record = self.repo.get(movie_id)
        return MovieResponse.from_record(record) if record else None

    def create_movie(self, form: MovieForm, poster: Optional[PosterUpload] = None) -> MovieResponse:
        record = MovieRecord(
            title=form.normalized_title(),
            genre=form.normalized_genre(),
            rating=form.rating,
        )
        if poster is not None:
            self._attach_poster(record, poster)
        try:
            created = self.repo.create(record)
        except RepositoryError:
            if record.poster_image_key:
                logger.warning("Insert failed after upload; poster %s is orphaned", record.poster_image_key)
            raise
        logger.info("Created movie %s", created.id)
        return MovieResponse.from_record(created)

    def update_movie(
        self, movie_id: str, form: MovieForm, poster: Optional[PosterUpload] = None
    ) -> Tuple[Optional[MovieResponse], bool]:
        """Returns (movie, was_modified); (None, False) when the id has no record."""
        existing = self.repo.get(movie_id)
        if existing is None:
            return None, False

        existing.title = form.normalized_title()
        existing.genre = form.normalized_genre()
        existing.rating = form.rating

        if poster is not None:
            # reject a bad file before the current poster is removed
            validate_poster(poster)
            if existing.poster_image_key:
                self.storage.delete(existing.poster_image_key)
            self._attach_poster(existing, poster)

        updated, was_modified = self.repo.replace(movie_id, existing)
        if updated is None:
            return None, False
        logger.info("Updated movie %s (modified=%s)", movie_id, was_modified)
        return MovieResponse.from_record(updated), was_modified

    def delete_movie(self, movie_id: str) -> bool:
        existing = self.repo.get(movie_id)
        if existing is None:
            return False

        deleted = self.repo.delete(movie_id)
        if deleted and existing.poster_image_key:
            try:
                self.storage.delete(existing.poster_image_key)
            except PosterStorageError:
                logger.error("Movie %s deleted but poster %s was not removed", movie_id, existing.poster_image_key)
                raise
        if deleted:
            logger.info("Deleted movie %s", movie_id)
        return deleted


# Module-level default service, built lazily from configuration.
_default_service: Optional[MovieService] = None


def get_movie_service() -> MovieService:
    global _default_service
    if _default_service is None:
        _default_service = MovieService()
    return _default_service


def set_movie_service(service: Optional[MovieService]) -> None:
    """Override the default service (useful for tests)."""
    global _default_service
    _default_service = service
