"""Base service class for domain services."""


class Service:
    """Base class for all domain services.

    Domain services contain logic that spans several repositories or does
    not belong to a single entity.
    """

    pass
