"""Logfire setup for scripts and the engine.

Repositories log through ``logfire`` directly; this module only wires the
exporter and the SQLAlchemy integration.
"""

import logfire
from sqlalchemy.ext.asyncio import AsyncEngine

from snippetbox.config import Settings


def _should_send(settings: Settings) -> bool:
    """An explicit flag wins, otherwise a configured token turns sending on."""
    flag = settings.observability.send_to_logfire
    if flag is not None:
        return flag
    return settings.observability.logfire_token is not None


def configure_logfire(settings: Settings, service_name: str = "snippetbox") -> None:
    """Configure the Logfire exporter and console output.

    Args:
        settings: Application settings
        service_name: Name reported on every span
    """
    send = _should_send(settings)

    logfire.configure(
        service_name=service_name,
        service_version="0.1.0",
        environment=settings.environment,
        token=settings.observability.logfire_token,
        send_to_logfire=send,
        console=logfire.ConsoleOptions(
            colors="auto",
            span_style="show-parents",
            verbose=settings.debug,
        ),
    )
    logfire.debug(
        "Logfire configured",
        environment=settings.environment,
        send_to_logfire=send,
    )


def instrument_sqlalchemy(engine: AsyncEngine) -> None:
    """Trace every statement the engine executes.

    SQL commenter annotations are only added for PostgreSQL, where they
    show up in ``pg_stat_statements``.
    """
    logfire.instrument_sqlalchemy(
        engine=engine.sync_engine,
        enable_commenter=engine.dialect.name == "postgresql",
    )
