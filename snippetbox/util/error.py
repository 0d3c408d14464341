"""Errors raised while wiring the application together."""


class UtilError(Exception):
    """Base utility error."""


class ConfigurationError(UtilError):
    """Settings describe something that cannot be built, e.g. an unsupported
    database backend."""
