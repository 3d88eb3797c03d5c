"""
Root pytest configuration and fixtures for the threadstream test suite.
"""

import os
from pathlib import Path
import sys

import pytest
import responses

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


@pytest.fixture
def api_key():
    """Test API key."""
    return "sk-test-12345"


@pytest.fixture
def base_url():
    """Test base URL."""
    return "https://api.test.local/v1"


@pytest.fixture(autouse=True)
def clean_environment():
    """Clean API environment variables before each test."""
    original_env = os.environ.copy()

    for key in list(os.environ.keys()):
        if key.startswith("OPENAI_"):
            del os.environ[key]

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def mock_requests():
    """Mock HTTP requests using responses library."""
    with responses.RequestsMock() as rsps:
        yield rsps


@pytest.fixture
def client(api_key, base_url):
    """Client pointed at the test base URL."""
    from threadstream import AssistantsClient

    return AssistantsClient(api_key=api_key, base_url=base_url)
