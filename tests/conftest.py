"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient

from mortgage_tools.calculations.models import LoanTerms
from mortgage_tools.main import app


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def standard_terms():
    """$300k, 6.5%, 30 years."""
    return LoanTerms(300000, 6.5, 30)


@pytest.fixture
def zero_rate_terms():
    """$200k, 0%, 15 years."""
    return LoanTerms(200000, 0, 15)
