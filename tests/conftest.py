"""
Pytest configuration and shared fixtures for privpay tests.

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

_common = importlib.import_module("fixtures.common")

make_ledger = _common.make_ledger
make_withdrawal = _common.make_withdrawal
make_two_chains = _common.make_two_chains


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def ledger():
    """Provide a depth-4 ledger with a root history of 5; ALICE is funded."""
    return make_ledger()


@pytest.fixture
def withdrawal_setup():
    """Provide (ledger, registry, verifier, protocol) with a 10 bps fee."""
    return make_withdrawal()


@pytest.fixture
def two_chains():
    """Provide (node_a, node_b, hub) connected through an in-memory hub."""
    return make_two_chains()


@pytest.fixture(autouse=True)
def _clean_privpay_env(monkeypatch):
    """Keep PRIVPAY_* variables from the developer's shell out of tests."""
    import os
    for key in list(os.environ):
        if key.startswith("PRIVPAY_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
