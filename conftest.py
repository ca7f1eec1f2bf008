import sys
from pathlib import Path
import os

import pytest

# Ensure repo root on sys.path for imports from anywhere in tests tree.
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("ENV", "dev")
os.environ.setdefault("MOVIES_BACKEND", "memory")
os.environ.setdefault("POSTER_BACKEND", "memory")

from movie_catalog.movies.service import set_movie_service  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_movie_service():
    set_movie_service(None)
    yield
    set_movie_service(None)
