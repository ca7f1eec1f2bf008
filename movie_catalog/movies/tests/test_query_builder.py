import pymongo

from movie_catalog.movies.models import MovieQuery, MovieSortBy, SortDirection
from movie_catalog.movies.query_builder import build_filter, build_page, build_sort


def test_no_terms_matches_everything():
    assert build_filter(MovieQuery()) == {}


def test_blank_terms_are_ignored():
    assert build_filter(MovieQuery(search_term="   ", genre="")) == {}


def test_search_term_is_unanchored_case_insensitive_regex():
    assert build_filter(MovieQuery(search_term="man")) == {"Title": {"$regex": "man", "$options": "i"}}


def test_search_term_is_not_escaped():
    # metacharacters reach the server as a pattern
    flt = build_filter(MovieQuery(search_term="s.n"))
    assert flt["Title"]["$regex"] == "s.n"


def test_genre_is_anchored_and_escaped():
    flt = build_filter(MovieQuery(genre="Sci-Fi (80s)"))
    assert flt == {"Genre": {"$regex": r"^Sci\-Fi\ \(80s\)$", "$options": "i"}}


def test_both_terms_are_anded():
    flt = build_filter(MovieQuery(search_term="man", genre="Action"))
    assert flt == {
        "$and": [
            {"Title": {"$regex": "man", "$options": "i"}},
            {"Genre": {"$regex": "^Action$", "$options": "i"}},
        ]
    }


def test_default_sort_is_title_ascending():
    assert build_sort(MovieQuery()) == [("Title", pymongo.ASCENDING)]


def test_rating_descending_sort():
    query = MovieQuery(sort_by=MovieSortBy.RATING, sort_direction=SortDirection.DESCENDING)
    assert build_sort(query) == [("Rating", pymongo.DESCENDING)]


def test_sort_names_bind_case_insensitively():
    query = MovieQuery(sort_by="rating", sort_direction="descending")
    assert query.sort_by == MovieSortBy.RATING
    assert query.sort_direction == SortDirection.DESCENDING


def test_page_window():
    assert build_page(MovieQuery()) == (0, 10)
    assert build_page(MovieQuery(page=3, page_size=25)) == (50, 25)
