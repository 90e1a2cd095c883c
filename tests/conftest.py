"""
pytest configuration for topic_serdes tests.

Adds src directory to Python path for imports and clears serdes
environment variables so tests see true defaults.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

SERDES_ENV_VARS = (
    "SERDES_KEY_SERIALIZER",
    "SERDES_KEY_DESERIALIZER",
    "SERDES_VALUE_SERIALIZER",
    "SERDES_VALUE_DESERIALIZER",
    "SERDES_STRING_ENCODING",
)


@pytest.fixture(autouse=True)
def clean_serdes_env(monkeypatch):
    """Remove serdes environment variables for every test."""
    for name in SERDES_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
