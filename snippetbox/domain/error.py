"""Domain layer errors."""


class DomainError(Exception):
    """Base domain error."""

    pass


class ValidationError(DomainError):
    """Domain validation error."""

    pass


class NotFoundError(DomainError):
    """Raised when a resource required to complete an operation is missing.

    Plain lookups return ``None`` instead; this is raised only where the
    operation cannot proceed without the row (e.g. replying to a comment
    that no longer exists).
    """

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")
