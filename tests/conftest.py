"""Pytest configuration and shared fixtures."""

import logfire
import pytest


@pytest.fixture(scope="session", autouse=True)
def quiet_logfire() -> None:
    """Configure Logfire once so spans are recorded locally and nothing is exported."""
    logfire.configure(send_to_logfire=False, console=False)
