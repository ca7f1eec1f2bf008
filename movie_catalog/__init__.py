"""Movie catalog backend: movie records in MongoDB, posters in object storage."""

__version__ = "0.1.0"
