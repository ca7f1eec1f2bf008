"""Liveness and readiness probes."""
from fastapi import APIRouter
from pydantic import BaseModel

from movie_catalog import __version__
from movie_catalog.movies.service import get_movie_service

router = APIRouter(tags=["system"])


class HealthStatus(BaseModel):
    status: str
    version: str = __version__


@router.get("/health", response_model=HealthStatus)
def health_check():
    return HealthStatus(status="ok")


@router.get("/ready", response_model=HealthStatus)
def readiness_check():
    # Resolving the service builds the configured backends; misconfiguration fails here.
    get_movie_service()
    return HealthStatus(status="ok")
