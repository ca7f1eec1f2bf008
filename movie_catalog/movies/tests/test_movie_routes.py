from io import BytesIO

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from movie_catalog.common.envelope import register_error_handlers
from movie_catalog.common.errors import RepositoryError
from movie_catalog.movies.models import MovieRecord
from movie_catalog.movies.repository import InMemoryMovieRepository
from movie_catalog.movies.routes import router as movies_router
from movie_catalog.movies.service import MovieService, set_movie_service
from movie_catalog.posters.models import MAX_POSTER_BYTES
from movie_catalog.posters.storage import InMemoryPosterStorage


class BrokenRepository(InMemoryMovieRepository):
    def find_page(self, query):
        raise RepositoryError("database query failed: timed out")


@pytest.fixture
def repo():
    return InMemoryMovieRepository()


@pytest.fixture
def storage():
    return InMemoryPosterStorage(public_url="https://pub.example.dev")


@pytest.fixture
def client(repo, storage):
    set_movie_service(MovieService(repo=repo, storage=storage))
    app = FastAPI()
    app.include_router(movies_router)
    register_error_handlers(app)
    return TestClient(app, raise_server_exceptions=False)


def _assert_envelope(resp, status: int, success: bool):
    assert resp.status_code == status
    body = resp.json()
    assert body["success"] is success
    assert body["statusCode"] == status
    assert "timestamp" in body
    return body


def _poster(name="poster.jpg", content=b"\xff\xd8\xff", content_type="image/jpeg"):
    return {"posterImage": (name, BytesIO(content), content_type)}


def test_create_then_get(client):
    resp = client.post("/api/movies", data={"title": "  Spiderman ", "genre": " Action ", "rating": "4"})
    body = _assert_envelope(resp, 201, True)
    movie = body["data"]
    assert body["message"] == "Movie created successfully"
    assert movie["title"] == "Spiderman"
    assert movie["genre"] == "Action"
    assert movie["rating"] == 4
    assert movie["posterImage"] is None
    assert "posterImageKey" not in movie
    assert resp.headers["location"] == f"/api/movies/{movie['id']}"

    resp = client.get(f"/api/movies/{movie['id']}")
    body = _assert_envelope(resp, 200, True)
    assert body["data"] == movie
    assert body["message"] == "Movie retrieved successfully"


def test_create_with_poster(client, storage):
    resp = client.post("/api/movies", data={"title": "Heat"}, files=_poster("heat.jpg"))
    movie = _assert_envelope(resp, 201, True)["data"]
    assert movie["posterImage"].startswith("https://pub.example.dev/heat_")
    assert len(storage.objects) == 1


def test_create_requires_title(client, repo):
    resp = client.post("/api/movies", data={"title": "   ", "rating": "9"})
    body = _assert_envelope(resp, 400, False)
    assert body["message"] == "Validation failed"
    assert body["error"]["errorCode"] == "VALIDATION_ERROR"
    errors = body["error"]["validationErrors"]
    assert errors["title"] == ["Title is required"]
    assert errors["rating"] == ["Rating must be between 1 and 5"]
    assert repo.movies == {}


def test_create_rejects_long_genre(client):
    resp = client.post("/api/movies", data={"title": "Heat", "genre": "x" * 101})
    body = _assert_envelope(resp, 400, False)
    assert body["error"]["validationErrors"]["genre"] == ["Genre cannot exceed 100 characters"]


@pytest.mark.parametrize(
    "files, message",
    [
        (_poster("big.jpg", b"\x00" * (6 * 1024 * 1024)), "File size exceeds the maximum allowed limit of 5MB."),
        (_poster("notes.txt", b"hello", "text/plain"), "Unsupported file type. Only JPEG, PNG, and WEBP are allowed."),
    ],
)
def test_create_rejects_bad_poster(client, repo, storage, files, message):
    resp = client.post("/api/movies", data={"title": "Heat"}, files=files)
    body = _assert_envelope(resp, 400, False)
    assert body["error"]["validationErrors"] == {"posterImage": [message]}
    assert repo.movies == {}
    assert storage.objects == {}


def test_get_unknown_movie(client):
    body = _assert_envelope(client.get("/api/movies/does-not-exist"), 404, False)
    assert body["message"] == "Movie not found"
    assert body["error"]["errorCode"] == "MOVIE_NOT_FOUND"


def test_list_paginates(client, repo):
    for i in range(25):
        repo.create(MovieRecord(title=f"Movie {i:02d}"))

    first = _assert_envelope(client.get("/api/movies", params={"pageSize": 10}), 200, True)["data"]
    last = _assert_envelope(client.get("/api/movies", params={"pageSize": 10, "page": 3}), 200, True)["data"]

    assert first["totalItems"] == 25
    assert first["totalPages"] == 3
    assert first["currentPage"] == 1
    assert first["hasPreviousPage"] is False
    assert first["hasNextPage"] is True
    assert len(first["data"]) == 10
    assert last["hasNextPage"] is False
    assert [m["title"] for m in last["data"]] == [f"Movie {i}" for i in range(20, 25)]


def test_list_filters_and_sorts(client, repo):
    repo.create(MovieRecord(title="Spiderman", genre="Action", rating=3))
    repo.create(MovieRecord(title="Batman", genre="Action Comedy", rating=5))
    repo.create(MovieRecord(title="Heat", genre="action", rating=4))

    resp = client.get("/api/movies", params={"searchTerm": "man"})
    assert [m["title"] for m in resp.json()["data"]["data"]] == ["Batman", "Spiderman"]

    resp = client.get("/api/movies", params={"genre": "Action", "sortBy": "Rating", "sortDirection": "Descending"})
    assert [m["title"] for m in resp.json()["data"]["data"]] == ["Heat", "Spiderman"]


def test_list_validates_paging(client):
    body = _assert_envelope(client.get("/api/movies", params={"page": 0, "pageSize": 101}), 400, False)
    errors = body["error"]["validationErrors"]
    assert errors["page"] == ["Page number must be greater than 0"]
    assert errors["pageSize"] == ["Page size must be between 1 and 100"]


def test_list_rejects_unknown_sort(client):
    body = _assert_envelope(client.get("/api/movies", params={"sortBy": "Year"}), 400, False)
    assert "sortBy" in body["error"]["validationErrors"]


def test_list_transport_failure(repo, storage):
    set_movie_service(MovieService(repo=BrokenRepository(), storage=storage))
    app = FastAPI()
    app.include_router(movies_router)
    register_error_handlers(app)
    resp = TestClient(app, raise_server_exceptions=False).get("/api/movies")
    body = _assert_envelope(resp, 500, False)
    assert body["message"].startswith("Error retrieving movies: ")


def test_update_messages(client):
    movie = client.post("/api/movies", data={"title": "Heat", "rating": "4"}).json()["data"]

    resp = client.put(f"/api/movies/{movie['id']}", data={"title": "Heat", "rating": "4"})
    body = _assert_envelope(resp, 200, True)
    assert body["message"] == "Movie found but no changes were made"

    resp = client.put(f"/api/movies/{movie['id']}", data={"title": "Heat", "rating": "5"})
    body = _assert_envelope(resp, 200, True)
    assert body["message"] == "Movie updated successfully"
    assert body["data"]["rating"] == 5


def test_update_replaces_poster(client, storage):
    movie = client.post("/api/movies", data={"title": "Heat"}, files=_poster("old.jpg")).json()["data"]
    old_key = movie["posterImage"].rsplit("/", 1)[-1]

    resp = client.put(f"/api/movies/{movie['id']}", data={"title": "Heat"}, files=_poster("new.webp", content_type="image/webp"))

    updated = _assert_envelope(resp, 200, True)["data"]
    assert storage.deleted == [old_key]
    assert updated["posterImage"].rsplit("/", 1)[-1].startswith("new_")


def test_update_unknown_movie(client):
    body = _assert_envelope(client.put("/api/movies/missing", data={"title": "Heat"}), 404, False)
    assert body["error"]["errorCode"] == "MOVIE_NOT_FOUND"


def test_update_validates_before_lookup(client):
    body = _assert_envelope(client.put("/api/movies/missing", data={}), 400, False)
    assert body["error"]["validationErrors"]["title"] == ["Title is required"]


def test_delete(client, storage):
    movie = client.post("/api/movies", data={"title": "Heat"}, files=_poster("foo.jpg")).json()["data"]
    key = movie["posterImage"].rsplit("/", 1)[-1]

    body = _assert_envelope(client.delete(f"/api/movies/{movie['id']}"), 200, True)
    assert body["message"] == "Movie deleted successfully"
    assert body["data"] is None
    assert storage.deleted == [key]

    _assert_envelope(client.delete(f"/api/movies/{movie['id']}"), 404, False)
    assert storage.deleted == [key]


class RecordingService(MovieService):
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.poster_sizes = []

    def create_movie(self, form, poster=None):
        self.poster_sizes.append(poster.size if poster else None)
        return super().create_movie(form, poster)


def test_oversize_poster_is_not_fully_buffered(repo, storage):
    service = RecordingService(repo=repo, storage=storage)
    set_movie_service(service)
    app = FastAPI()
    app.include_router(movies_router)
    register_error_handlers(app)
    client = TestClient(app, raise_server_exceptions=False)

    resp = client.post("/api/movies", data={"title": "Heat"}, files=_poster("huge.jpg", b"\x00" * (12 * 1024 * 1024)))

    body = _assert_envelope(resp, 400, False)
    assert body["error"]["validationErrors"] == {
        "posterImage": ["File size exceeds the maximum allowed limit of 5MB."]
    }
    assert service.poster_sizes == [MAX_POSTER_BYTES + 1]
    assert repo.movies == {}


def test_blank_rating_reads_as_absent(client):
    resp = client.post("/api/movies", data={"title": "Heat", "genre": "  ", "rating": "  "})
    movie = _assert_envelope(resp, 201, True)["data"]
    assert movie["rating"] is None
    assert movie["genre"] is None
