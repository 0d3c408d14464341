"""Mock providers for testing."""

from .persistence import SqlitePersistenceProvider
from .container import build_test_container

__all__ = [
    "SqlitePersistenceProvider",
    "build_test_container",
]
