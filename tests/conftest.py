"""
Shared pytest fixtures for clientbook tests.

Provides a small sample book. Plain helper functions live in helpers.py.
"""

from datetime import date

import pytest

from clientbook.model import Model
from clientbook.types import Client, Project, Status

from helpers import tags


@pytest.fixture
def alex() -> Client:
    return Client("Alex Yeoh", phone="87438807", email="alexyeoh@example.com", tags=tags("friends"))


@pytest.fixture
def bee() -> Client:
    return Client("Bee Lim", phone="99272758", tags=tags("friends", "colleague"))


@pytest.fixture
def website(alex) -> Project:
    return Project(
        "Company Website",
        deadline=date(2024, 3, 1),
        status=Status.IN_PROGRESS,
        client=alex,
        tags=tags("web", "urgent"),
    )


@pytest.fixture
def sculpture() -> Project:
    return Project(
        "Garden Sculpture",
        deadline=date(2024, 6, 30),
        status=Status.DONE,
        tags=tags("art"),
    )


@pytest.fixture
def model(alex, bee, website, sculpture) -> Model:
    """A model holding two clients and two projects."""
    m = Model()
    m.load([alex, bee], [website, sculpture])
    return m


@pytest.fixture
def store(tmp_path):
    """Empty store directory."""
    path = tmp_path / "store"
    path.mkdir()
    return path
