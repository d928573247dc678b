"""Repository sources and content fetching."""

from .base import ModelRunner, RepositorySource
from .local import DEFAULT_FETCH_WORKERS, LocalRepositorySource, fetch_contents

__all__ = [
    "DEFAULT_FETCH_WORKERS",
    "LocalRepositorySource",
    "ModelRunner",
    "RepositorySource",
    "fetch_contents",
]
