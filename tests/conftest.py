"""Shared fixtures for layer inspector tests."""

import io

import pytest
from rich.console import Console

from tests.helpers import make_image, make_layer


@pytest.fixture
def sample_image() -> bytes:
    """One real layer behind an empty FROM step."""
    return make_image(
        history=[
            {"empty_layer": True, "created_by": "FROM scratch"},
            {"created_by": "/bin/sh -c touch /a"},
        ],
        layers={"abc/layer.tar": make_layer([("/a", 0), ("/b", 100)])},
    )


@pytest.fixture
def capture_console():
    """Console writing plain text into a buffer."""
    buffer = io.StringIO()
    console = Console(file=buffer, width=200, color_system=None, highlight=False)
    return console, buffer
