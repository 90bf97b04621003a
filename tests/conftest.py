"""
Shared pytest fixtures and configuration for rowflow tests.
"""

import logging

import pytest

from rowflow import ListDataView
from tests.test_factories import (
    create_element_recorder,
    create_mixer_tree,
    create_two_empty_groups,
)


@pytest.fixture(autouse=True)
def debug_logging(caplog):
    """Capture rowflow debug output so failures show the mutation trail."""
    caplog.set_level(logging.DEBUG, logger="rowflow")


@pytest.fixture
def recorder():
    return create_element_recorder()


@pytest.fixture
def two_groups():
    """Root with empty groups A, B."""
    return create_two_empty_groups()


@pytest.fixture
def mixer():
    return create_mixer_tree()


@pytest.fixture
def view_factory():
    """Build views and destroy them when the test ends."""
    views = []

    def make(root, amount=10, *args, **kwargs):
        view = ListDataView(root, amount, *args, **kwargs)
        views.append(view)
        return view

    yield make

    for view in views:
        view.destroy()
