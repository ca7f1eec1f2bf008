import json

from movie_catalog.common.envelope import (
    build_error_envelope,
    collect_validation_errors,
    success_response,
)
from movie_catalog.movies.models import MovieResponse


def test_success_response_uses_camel_case():
    resp = success_response(MovieResponse(id="1", title="Heat", poster_image="https://x/y.jpg"), "ok")
    body = json.loads(resp.body)
    assert resp.status_code == 200
    assert body["success"] is True
    assert body["statusCode"] == 200
    assert body["data"]["posterImage"] == "https://x/y.jpg"
    assert body["error"] is None


def test_error_envelope_defaults_error_message():
    envelope = build_error_envelope("Movie not found", status_code=404, error_code="MOVIE_NOT_FOUND")
    dumped = envelope.model_dump(by_alias=True)
    assert dumped["success"] is False
    assert dumped["error"]["errorCode"] == "MOVIE_NOT_FOUND"
    assert dumped["error"]["errorMessage"] == "Movie not found"


def test_collect_validation_errors_groups_by_field():
    errors = [
        {"loc": ("query", "pageSize"), "msg": "Input should be a valid integer", "type": "int_parsing"},
        {"loc": ("page_size",), "msg": "Value error, too big", "type": "value_error", "ctx": {"error": ValueError("too big")}},
        {"loc": ("body", "title"), "msg": "Field required", "type": "missing"},
    ]
    assert collect_validation_errors(errors) == {
        "pageSize": ["Input should be a valid integer", "too big"],
        "title": ["Field required"],
    }
