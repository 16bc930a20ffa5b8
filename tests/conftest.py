"""
Pytest configuration and shared fixtures for erlup tests.
"""

import logging

import pytest

# Import test fixtures to make them available to all tests
# These imports register the fixtures with pytest's fixture discovery system
# ruff: noqa: F401
from tests.fixtures.directories import (
    cache_dir,
    isolated_home,
    make_install,
    project_dir,
    registry,
    user_config,
)
from tests.fixtures.fakes import fake_git, fake_runner, launcher


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that require git on PATH",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if not config.getoption("--integration"):
        skip_integration = pytest.mark.skip(reason="need --integration option to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (requires --integration)",
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def quiet_logging_config(monkeypatch):
    """
    Keep the CLI from reconfiguring the root logger.

    ``configure_logging`` uses ``basicConfig(force=True)``, which would drop
    the caplog handler.
    """
    monkeypatch.setattr(
        "erlup.cli.parser.configure_logging", lambda verbose=False, quiet=False: None
    )


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Make sure the user's erlup environment never leaks into tests."""
    monkeypatch.delenv("ERLUP_CONFIGURE_OPTIONS", raising=False)
    monkeypatch.delenv("DEBUG", raising=False)
    yield
    logging.getLogger().setLevel(logging.WARNING)
