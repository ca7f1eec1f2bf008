from __future__ import annotations

import math
from enum import Enum
from typing import List, Optional, Type, TypeVar

from pydantic import BaseModel, Field, field_validator

from movie_catalog.common.envelope import CamelModel

TITLE_MAX_LENGTH = 200
GENRE_MAX_LENGTH = 100
RATING_MIN = 1
RATING_MAX = 5
PAGE_SIZE_MAX = 100

E = TypeVar("E", bound=Enum)


class MovieSortBy(str, Enum):
    TITLE = "Title"
    RATING = "Rating"


class SortDirection(str, Enum):
    ASCENDING = "Ascending"
    DESCENDING = "Descending"


def _enum_by_name(enum_cls: Type[E], value):
    """Bind enum values case-insensitively ("rating" -> Rating)."""
    if isinstance(value, str):
        for member in enum_cls:
            if member.value.lower() == value.strip().lower():
                return member
    return value


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class MovieRecord(BaseModel):
    id: Optional[str] = None
    title: str
    genre: Optional[str] = None
    rating: Optional[int] = None
    poster_image: Optional[str] = None
    poster_image_key: Optional[str] = None


class MovieQuery(BaseModel):
    search_term: Optional[str] = None
    genre: Optional[str] = None
    page: int = 1
    page_size: int = 10
    sort_by: MovieSortBy = MovieSortBy.TITLE
    sort_direction: SortDirection = SortDirection.ASCENDING

    @field_validator("page")
    @classmethod
    def _page_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Page number must be greater than 0")
        return value

    @field_validator("page_size")
    @classmethod
    def _page_size_bounds(cls, value: int) -> int:
        if not 1 <= value <= PAGE_SIZE_MAX:
            raise ValueError(f"Page size must be between 1 and {PAGE_SIZE_MAX}")
        return value

    @field_validator("sort_by", mode="before")
    @classmethod
    def _sort_by_name(cls, value):
        return _enum_by_name(MovieSortBy, value)

    @field_validator("sort_direction", mode="before")
    @classmethod
    def _sort_direction_name(cls, value):
        return _enum_by_name(SortDirection, value)

    @property
    def has_search_term(self) -> bool:
        return bool(self.search_term and self.search_term.strip())

    @property
    def has_genre(self) -> bool:
        return bool(self.genre and self.genre.strip())


class MovieForm(BaseModel):
    """Create/update input as posted by the multipart form."""

    title: Optional[str] = Field(default=None, validate_default=True)
    genre: Optional[str] = None
    rating: Optional[int] = None

    @field_validator("title", mode="before")
    @classmethod
    def _title_required(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("Title is required")
        return value

    @field_validator("title")
    @classmethod
    def _title_length(cls, value: str) -> str:
        if not 1 <= len(value) <= TITLE_MAX_LENGTH:
            raise ValueError(f"Title must be between 1 and {TITLE_MAX_LENGTH} characters")
        return value

    @field_validator("genre", "rating", mode="before")
    @classmethod
    def _empty_is_absent(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("genre")
    @classmethod
    def _genre_length(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and len(value) > GENRE_MAX_LENGTH:
            raise ValueError(f"Genre cannot exceed {GENRE_MAX_LENGTH} characters")
        return value

    @field_validator("rating")
    @classmethod
    def _rating_range(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and not RATING_MIN <= value <= RATING_MAX:
            raise ValueError(f"Rating must be between {RATING_MIN} and {RATING_MAX}")
        return value

    def normalized_title(self) -> str:
        return (self.title or "").strip()

    def normalized_genre(self) -> Optional[str]:
        genre = _blank_to_none(self.genre)
        return genre.strip() if genre is not None else None


class MovieResponse(CamelModel):
    id: str
    title: str
    genre: Optional[str] = None
    rating: Optional[int] = None
    poster_image: Optional[str] = None

    @classmethod
    def from_record(cls, record: MovieRecord) -> "MovieResponse":
        return cls(
            id=record.id or "",
            title=record.title,
            genre=record.genre,
            rating=record.rating,
            poster_image=record.poster_image,
        )


class PaginatedResponse(CamelModel):
    data: List[MovieResponse] = Field(default_factory=list)
    current_page: int
    page_size: int
    total_items: int
    total_pages: int
    has_previous_page: bool
    has_next_page: bool

    @classmethod
    def build(cls, data: List[MovieResponse], current_page: int, page_size: int, total_items: int) -> "PaginatedResponse":
        total_pages = math.ceil(total_items / page_size)
        return cls(
            data=data,
            current_page=current_page,
            page_size=page_size,
            total_items=total_items,
            total_pages=total_pages,
            has_previous_page=current_page > 1,
            has_next_page=current_page < total_pages,
        )
