"""Shared fixtures for unit tests.

Unit tests never touch the network: every component receives a scripted
stand-in for the GenerativeModel protocol (see stubs.py).
"""

from unittest.mock import MagicMock

import pytest

from pantry_chef.utils.config import GenerationSettings


@pytest.fixture
def settings():
    """Default generation settings (3 attempts, quality threshold 50)."""
    return GenerationSettings()


@pytest.fixture
def mock_logger():
    """MagicMock standing in for a logging.Logger."""
    return MagicMock()
