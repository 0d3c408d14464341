"""Test container builder with selective unmocking."""

from dishka import AsyncContainer, make_async_container

from snippetbox.util.di import PROVIDERS, Component, get_provider, mockable_components


def build_test_container(unmock: set[Component] | None = None) -> AsyncContainer:
    """Build a container where every swappable component is mocked by default.

    An unmocked persistence component connects to ``DATABASE__URL``, which
    must point at a migrated PostgreSQL database.

    Examples:
        # Repository tests against in-memory SQLite
        container = build_test_container()

        # Same tests against PostgreSQL
        container = build_test_container(unmock={"persistence"})

    Raises:
        ValueError: If unknown components are named
    """
    unmock = unmock or set()
    unknown = unmock - mockable_components()
    if unknown:
        raise ValueError(f"Unknown components: {unknown}")

    providers = [
        get_provider(base, use_mock=base.__mock_component__ not in unmock)()
        for base in PROVIDERS
    ]
    return make_async_container(*providers)
