"""
Root pytest configuration and fixtures for askstream.

Provides common fixtures and test utilities for the test suite.
"""

from pathlib import Path
import sys

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


@pytest.fixture
def base_url():
    """Test endpoint URL."""
    return "https://ask.test.example"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep developer environment variables out of client construction."""
    monkeypatch.delenv("ASKSTREAM_BASE_URL", raising=False)
    monkeypatch.delenv("ASKSTREAM_API_KEY", raising=False)


@pytest.fixture
def ask_text_payload():
    """Final-form answer payload."""
    return {"blocks": [{"intended_usage": "ask_text", "markdown_block": {"answer": "Paris"}}]}


@pytest.fixture
def sources_payload():
    """Direct sources block payload."""
    return {
        "blocks": [
            {
                "intended_usage": "sources_answer_mode",
                "sources_mode_block": {"web_results": [{"name": "Wiki", "url": "https://wiki"}]},
            }
        ]
    }
