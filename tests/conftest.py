"""Shared test configuration."""

import logfire

# Keep spans and logs local
logfire.configure(send_to_logfire=False, console=False)
