from __future__ import annotations

from typing import Optional, Type, TypeVar

from fastapi import APIRouter, File, Form, Query, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from movie_catalog.common.envelope import error_response, success_response
from movie_catalog.common.errors import TransportError
from movie_catalog.movies.models import MovieForm, MovieQuery
from movie_catalog.movies.service import get_movie_service
from movie_catalog.posters.models import MAX_POSTER_BYTES, PosterUpload

router = APIRouter(prefix="/api/movies", tags=["movies"])

MOVIE_NOT_FOUND = "MOVIE_NOT_FOUND"

M = TypeVar("M", bound=BaseModel)


def _bind(model_cls: Type[M], **values) -> M:
    try:
        return model_cls(**values)
    except PydanticValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc


def _poster_from(upload: Optional[UploadFile]) -> Optional[PosterUpload]:
    if upload is None or not upload.filename:
        return None
    # One byte past the limit is enough for validate_poster to reject it.
    return PosterUpload(
        filename=upload.filename,
        content_type=upload.content_type or "application/octet-stream",
        content=upload.file.read(MAX_POSTER_BYTES + 1),
    )


def _not_found():
    return error_response("Movie not found", status_code=404, error_code=MOVIE_NOT_FOUND)


@router.get("")
def list_movies(
    search_term: Optional[str] = Query(None, alias="searchTerm"),
    genre: Optional[str] = Query(None),
    page: int = Query(1),
    page_size: int = Query(10, alias="pageSize"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_direction: Optional[str] = Query(None, alias="sortDirection"),
):
    values = {"search_term": search_term, "genre": genre, "page": page, "page_size": page_size}
    if sort_by is not None:
        values["sort_by"] = sort_by
    if sort_direction is not None:
        values["sort_direction"] = sort_direction
    query = _bind(MovieQuery, **values)
    try:
        movies = get_movie_service().list_movies(query)
    except TransportError as exc:
        return error_response(f"Error retrieving movies: {exc}", status_code=500)
    return success_response(movies, "Movies retrieved successfully")


@router.get("/{movie_id}")
def get_movie(movie_id: str):
    try:
        movie = get_movie_service().get_movie(movie_id)
    except TransportError as exc:
        return error_response(f"Error retrieving movie: {exc}", status_code=500)
    if movie is None:
        return _not_found()
    return success_response(movie, "Movie retrieved successfully")


@router.post("")
def create_movie(
    title: Optional[str] = Form(None),
    genre: Optional[str] = Form(None),
    rating: Optional[str] = Form(None),
    poster_image: Optional[UploadFile] = File(None, alias="posterImage"),
):
    form = _bind(MovieForm, title=title, genre=genre, rating=rating)
    try:
        movie = get_movie_service().create_movie(form, _poster_from(poster_image))
    except TransportError as exc:
        return error_response(f"Error creating movie: {exc}", status_code=500)
    return success_response(
        movie,
        "Movie created successfully",
        status_code=201,
        headers={"Location": f"{router.prefix}/{movie.id}"},
    )


@router.put("/{movie_id}")
def update_movie(
    movie_id: str,
    title: Optional[str] = Form(None),
    genre: Optional[str] = Form(None),
    rating: Optional[str] = Form(None),
    poster_image: Optional[UploadFile] = File(None, alias="posterImage"),
):
    form = _bind(MovieForm, title=title, genre=genre, rating=rating)
    try:
        movie, was_modified = get_movie_service().update_movie(movie_id, form, _poster_from(poster_image))
    except TransportError as exc:
        return error_response(f"Error updating movie: {exc}", status_code=500)
    if movie is None:
        return _not_found()
    message = "Movie updated successfully" if was_modified else "Movie found but no changes were made"
    return success_response(movie, message)


@router.delete("/{movie_id}")
def delete_movie(movie_id: str):
    try:
        deleted = get_movie_service().delete_movie(movie_id)
    except TransportError as exc:
        return error_response(f"Error deleting movie: {exc}", status_code=500)
    if not deleted:
        return _not_found()
    return success_response(None, "Movie deleted successfully")
