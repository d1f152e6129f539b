"""
Component Test Layer Configuration

Structure:
    tests/component/
    └── imip_service/   Decision engine, token issuer, transport and API with mocks

Usage:
    pytest tests/component -v
"""
import os
import sys

import pytest

# Set testing environment BEFORE any imports
os.environ["ENV"] = "testing"
os.environ["ENVIRONMENT"] = "testing"

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from tests.component.imip_service.mocks import (
    MockMailTransport,
    MockRandom,
    MockTokenStore,
)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line(
        "markers", "component: marks tests as component tests"
    )


# =============================================================================
# Mock Fixtures
# =============================================================================

@pytest.fixture
def mock_mail_transport():
    """Create a fresh MockMailTransport"""
    return MockMailTransport()


@pytest.fixture
def mock_token_store():
    """Create a fresh MockTokenStore"""
    return MockTokenStore()


@pytest.fixture
def mock_random():
    """Deterministic token source"""
    return MockRandom()
