"""
Pytest configuration and shared fixtures for data service archive tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_archive = importlib.import_module("fixtures.archive_fixtures")

make_manifest = _archive.make_manifest
make_payloads = _archive.make_payloads
make_full_archive = _archive.make_full_archive


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def manifest():
    """Provide the default manifest."""
    return make_manifest()


@pytest.fixture
def full_archive():
    """Provide the default archive bytes."""
    return make_full_archive()


@pytest.fixture
def content_tree():
    """Provide an empty in-memory content tree."""
    from core.content import InMemoryContentTree
    return InMemoryContentTree()


@pytest.fixture
def data_service_node(content_tree):
    """Provide a data service node at /PortfolioService."""
    from core.content import NodeKinds
    return content_tree.create_child(content_tree.root, "PortfolioService", NodeKinds.DATA_SERVICE)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep DSARCHIVE_* variables from the host out of the tests."""
    import os
    from core.config.runtime import set_default_config
    for key in list(os.environ):
        if key.startswith("DSARCHIVE_"):
            monkeypatch.delenv(key, raising=False)
    set_default_config(None)
    yield
    set_default_config(None)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
