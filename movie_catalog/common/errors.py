"""Domain exceptions shared by the catalog engines."""
from __future__ import annotations

from typing import Dict, List, Optional


class CatalogError(RuntimeError):
    pass


class ValidationError(CatalogError):
    """Bad input shape, size or type. Nothing has been persisted."""

    def __init__(self, errors: Dict[str, List[str]], message: str = "Validation failed") -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors


class PosterValidationError(ValidationError):
    field = "posterImage"

    def __init__(self, reason: str) -> None:
        super().__init__({self.field: [reason]})
        self.reason = reason

    def __str__(self) -> str:
        return self.reason


class TransportError(CatalogError):
    """A record store or asset store call did not succeed."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class RepositoryError(TransportError):
    pass


class PosterStorageError(TransportError):
    pass
