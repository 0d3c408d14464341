"""Dependency injection container."""

from dishka import AsyncContainer, make_async_container

from snippetbox.util.di import PROVIDERS, get_provider


def create_container() -> AsyncContainer:
    """Build the production container.

    Settings come from the environment, so no arguments are needed.
    """
    return make_async_container(*(get_provider(base)() for base in PROVIDERS))
