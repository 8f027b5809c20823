"""
JSON storage for clients and projects.

Projects refer to their client by name; the link is resolved on load.
Writes go to a temporary file that then replaces the data file, so an
interrupted save never leaves a half-written file behind.
"""

import json
import logging
import os
from datetime import date
from pathlib import Path
from typing import Any

from .errors import StorageError
from .model import Model
from .types import Client, Project, Status, Tag

logger = logging.getLogger(__name__)

DATA_VERSION = 1


def client_to_dict(client: Client) -> dict[str, Any]:
    return {
        "name": client.name,
        "phone": client.phone,
        "email": client.email,
        "tags": sorted(t.name for t in client.tags),
    }


def project_to_dict(project: Project) -> dict[str, Any]:
    return {
        "title": project.title,
        "deadline": project.deadline.isoformat() if project.deadline else None,
        "status": project.status.name,
        "client": project.client_name,
        "tags": sorted(t.name for t in project.tags),
    }


def client_from_dict(data: dict[str, Any]) -> Client:
    return Client(
        name=data["name"],
        phone=data.get("phone"),
        email=data.get("email"),
        tags=frozenset(Tag(t) for t in data.get("tags", [])),
    )


def project_from_dict(data: dict[str, Any], clients: dict[str, Client]) -> Project:
    client_name = data.get("client")
    client = None
    if client_name is not None:
        client = clients.get(client_name.casefold())
        if client is None:
            raise ValueError(f"Project {data['title']!r} refers to unknown client {client_name!r}")
    deadline = data.get("deadline")
    return Project(
        title=data["title"],
        deadline=date.fromisoformat(deadline) if deadline else None,
        status=Status[data.get("status", Status.NOT_STARTED.name)],
        client=client,
        tags=frozenset(Tag(t) for t in data.get("tags", [])),
    )


def load_data(path: Path) -> tuple[list[Client], list[Project]]:
    """Read clients and projects; a missing file means an empty book."""
    if not path.exists():
        return [], []
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        version = data.get("version", 1)
        if version > DATA_VERSION:
            raise ValueError(f"Data version {version} is newer than supported ({DATA_VERSION})")
        clients = [client_from_dict(c) for c in data.get("clients", [])]
        by_name = {c.name.casefold(): c for c in clients}
        projects = [project_from_dict(p, by_name) for p in data.get("projects", [])]
    except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
        raise StorageError(f"Cannot read data file {path}: {e}") from e
    return clients, projects


def save_data(path: Path, clients, projects) -> None:
    data = {
        "version": DATA_VERSION,
        "clients": [client_to_dict(c) for c in clients],
        "projects": [project_to_dict(p) for p in projects],
    }
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)
    except OSError as e:
        raise StorageError(f"Cannot write data file {path}: {e}") from e


class JsonStorage:
    """Loads a Model from, and saves it to, one JSON data file."""

    def __init__(self, path: Path):
        self.path = path

    def load(self) -> Model:
        clients, projects = load_data(self.path)
        model = Model()
        model.load(clients, projects)
        logger.debug("Loaded %s", self.path)
        return model

    def save(self, model: Model) -> None:
        save_data(self.path, model.clients, model.projects)
        logger.debug("Saved %s", self.path)
