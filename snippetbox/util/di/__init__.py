"""Dependency injection module."""

from typing import Type

from snippetbox.util.di.base import Component, ProviderBase
from snippetbox.util.di.core import ProdConfigProvider
from snippetbox.util.di.domain import ProdDomainProvider
from snippetbox.util.di.infrastructure import (
    PersistenceProvider,
    ProdPersistenceProvider,
)
from snippetbox.util.di.repository import ProdRepositoryProvider

# Order is irrelevant to dishka; components with implementations are swappable
PROVIDERS: list[Type[ProviderBase]] = [
    ProdConfigProvider,
    ProdRepositoryProvider,
    ProdDomainProvider,
    PersistenceProvider,
]


def mockable_components() -> set[Component]:
    """Names of the components that ship both a real and a mock provider."""
    return {
        base.__mock_component__
        for base in PROVIDERS
        if base.__mock_component__ is not None
    }


def get_provider(
    base: Type[ProviderBase], use_mock: bool = False
) -> Type[ProviderBase]:
    """Resolve a provider entry to the class that should be instantiated.

    Entries without a component name are concrete and returned as-is. For a
    component, the subclass whose ``__is_mock__`` matches ``use_mock`` wins.

    Raises:
        ValueError: If the component has no implementation of that kind
    """
    if base.__mock_component__ is None:
        return base

    for impl in base.__subclasses__():
        if impl.__is_mock__ == use_mock:
            return impl

    kind = "mock" if use_mock else "production"
    raise ValueError(f"No {kind} implementation for {base.__mock_component__}")


__all__ = [
    "Component",
    "ProviderBase",
    "PROVIDERS",
    "get_provider",
    "mockable_components",
    "ProdConfigProvider",
    "ProdDomainProvider",
    "ProdRepositoryProvider",
    "PersistenceProvider",
    "ProdPersistenceProvider",
]
