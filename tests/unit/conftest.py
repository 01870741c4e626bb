"""Shared fixtures for emission unit tests."""

import pytest
from recording import RecordingBuilder

from trimveo.emit import FormatAllowList


@pytest.fixture
def builder() -> RecordingBuilder:
    """Recording package builder."""
    return RecordingBuilder()


@pytest.fixture
def formats() -> FormatAllowList:
    """Allow-list approving PDF and plain text."""
    return FormatAllowList([".pdf", ".txt"])
