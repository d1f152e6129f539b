"""
Root conftest.py - Global fixtures and configuration for all test layers.

Test Layers:
    - component/  : Component tests (mocked dependencies)
    - unit/       : Unit tests (pure functions, no I/O)
"""
import os
import sys

import pytest

# Set testing environment BEFORE any project imports
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("ENVIRONMENT", "testing")

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from core.config.imip_config import ImipConfig
from microservices.imip_service.localization import Localizer


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def imip_config() -> ImipConfig:
    """Default iMIP configuration, independent of the environment"""
    return ImipConfig(mail_domain="example.org", invitation_base_url="https://cloud.example.org")


@pytest.fixture
def l10n() -> Localizer:
    """English localizer"""
    return Localizer("en")


@pytest.fixture
def l10n_de() -> Localizer:
    """German localizer"""
    return Localizer("de")
