"""
Session state: the client and project lists, their filtered views, and
the tag usage index that counts their tags.

Every mutation first checks everything that can be rejected, then updates
the tag index (which is itself all-or-nothing) and the lists together.
A failed call leaves entities and index untouched. Listeners, of the model
or of its tag index, run only after both sides are updated.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from .errors import CommandError, DuplicateEntityError
from .predicates import SHOW_ALL, EntityPredicate
from .tag_index import TagUsageIndex, TagUsageRecord
from .types import Client, Project

logger = logging.getLogger(__name__)

MESSAGE_DUPLICATE_CLIENT = "This client already exists in the client book"
MESSAGE_DUPLICATE_PROJECT = "This project already exists in the client book"
MESSAGE_CLIENT_NOT_FOUND = "The client is not in the client book"
MESSAGE_PROJECT_NOT_FOUND = "The project is not in the client book"


@dataclass(frozen=True)
class ModelChange:
    """One committed change: action is 'added', 'edited', 'deleted' or 'loaded'."""
    action: str
    kind: str
    old: Any = None
    new: Any = None


ModelListener = Callable[[ModelChange], None]


class Model:
    """In-memory clients and projects with a synchronized tag usage index."""

    def __init__(self):
        self._clients: list[Client] = []
        self._projects: list[Project] = []
        self._client_filter: EntityPredicate = SHOW_ALL
        self._project_filter: EntityPredicate = SHOW_ALL
        self._listeners: list[ModelListener] = []
        self.tag_index = TagUsageIndex()

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def clients(self) -> tuple[Client, ...]:
        return tuple(self._clients)

    @property
    def projects(self) -> tuple[Project, ...]:
        return tuple(self._projects)

    @property
    def filtered_clients(self) -> list[Client]:
        return [c for c in self._clients if self._client_filter.matches(c)]

    @property
    def filtered_projects(self) -> list[Project]:
        return [p for p in self._projects if self._project_filter.matches(p)]

    def update_filtered_clients(self, predicate: EntityPredicate) -> None:
        self._client_filter = predicate

    def update_filtered_projects(self, predicate: EntityPredicate) -> None:
        self._project_filter = predicate

    def tag_usage(self) -> list[TagUsageRecord]:
        return self.tag_index.records()

    def has_client(self, client: Client) -> bool:
        return any(c.is_same_client(client) for c in self._clients)

    def has_project(self, project: Project) -> bool:
        return any(p.is_same_project(project) for p in self._projects)

    def find_client(self, name: str) -> Optional[Client]:
        """Client whose name equals ``name`` ignoring case, if any."""
        key = name.strip().casefold()
        for client in self._clients:
            if client.name.casefold() == key:
                return client
        return None

    # -------------------------------------------------------------------------
    # Clients
    # -------------------------------------------------------------------------

    def add_client(self, client: Client) -> None:
        if self.has_client(client):
            raise DuplicateEntityError(MESSAGE_DUPLICATE_CLIENT)
        with self.tag_index.deferred_notifications():
            self.tag_index.on_client_added(client)
            self._clients.append(client)
        logger.info("Added client %s", client.name)
        self._notify(ModelChange("added", "client", new=client))

    def set_client(self, target: Client, edited: Client) -> None:
        """Replace ``target`` with ``edited`` and re-link its projects."""
        position = self._position(self._clients, target, MESSAGE_CLIENT_NOT_FOUND)
        if not target.is_same_client(edited) and self.has_client(edited):
            raise DuplicateEntityError(MESSAGE_DUPLICATE_CLIENT)

        with self.tag_index.deferred_notifications():
            self.tag_index.on_client_edited(target, edited)
            self._clients[position] = edited
            relinked = self._relink_projects(target, edited)
        logger.info("Edited client %s", edited.name)
        self._notify(ModelChange("edited", "client", old=target, new=edited), *relinked)

    def delete_client(self, target: Client) -> None:
        """Remove ``target``; projects linked to it lose their link."""
        position = self._position(self._clients, target, MESSAGE_CLIENT_NOT_FOUND)
        with self.tag_index.deferred_notifications():
            self.tag_index.on_client_removed(target)
            del self._clients[position]
            relinked = self._relink_projects(target, None)
        logger.info("Deleted client %s", target.name)
        self._notify(ModelChange("deleted", "client", old=target), *relinked)

    def _relink_projects(self, old: Client, new: Optional[Client]) -> list[ModelChange]:
        # Tags are untouched, so the index needs no update
        changes = []
        for i, project in enumerate(self._projects):
            if project.client is not None and project.client.is_same_client(old):
                relinked = project.linked_to(new)
                self._projects[i] = relinked
                changes.append(ModelChange("edited", "project", old=project, new=relinked))
        return changes

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    def add_project(self, project: Project) -> None:
        if self.has_project(project):
            raise DuplicateEntityError(MESSAGE_DUPLICATE_PROJECT)
        with self.tag_index.deferred_notifications():
            self.tag_index.on_project_added(project)
            self._projects.append(project)
        logger.info("Added project %s", project.title)
        self._notify(ModelChange("added", "project", new=project))

    def set_project(self, target: Project, edited: Project) -> None:
        position = self._position(self._projects, target, MESSAGE_PROJECT_NOT_FOUND)
        if not target.is_same_project(edited) and self.has_project(edited):
            raise DuplicateEntityError(MESSAGE_DUPLICATE_PROJECT)

        with self.tag_index.deferred_notifications():
            self.tag_index.on_project_edited(target, edited)
            self._projects[position] = edited
        logger.info("Edited project %s", edited.title)
        self._notify(ModelChange("edited", "project", old=target, new=edited))

    def delete_project(self, target: Project) -> None:
        position = self._position(self._projects, target, MESSAGE_PROJECT_NOT_FOUND)
        with self.tag_index.deferred_notifications():
            self.tag_index.on_project_removed(target)
            del self._projects[position]
        logger.info("Deleted project %s", target.title)
        self._notify(ModelChange("deleted", "project", old=target))

    # -------------------------------------------------------------------------
    # Bulk load
    # -------------------------------------------------------------------------

    def load(self, clients: Iterable[Client], projects: Iterable[Project]) -> None:
        """Replace all data and rebuild the tag index from it."""
        clients = list(clients)
        projects = list(projects)
        for i, client in enumerate(clients):
            if any(client.is_same_client(c) for c in clients[i + 1:]):
                raise DuplicateEntityError(MESSAGE_DUPLICATE_CLIENT)
        for i, project in enumerate(projects):
            if any(project.is_same_project(p) for p in projects[i + 1:]):
                raise DuplicateEntityError(MESSAGE_DUPLICATE_PROJECT)

        with self.tag_index.deferred_notifications():
            self.tag_index.rebuild(clients, projects)
            self._clients = clients
            self._projects = projects
            self._client_filter = SHOW_ALL
            self._project_filter = SHOW_ALL
        logger.debug("Loaded %d clients, %d projects", len(clients), len(projects))
        self._notify(ModelChange("loaded", "all"))

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def subscribe(self, listener: ModelListener) -> Callable[[], None]:
        """Register ``listener`` for committed changes; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, *changes: ModelChange) -> None:
        for change in changes:
            for listener in list(self._listeners):
                listener(change)

    @staticmethod
    def _position(items: list, target, message: str) -> int:
        try:
            return items.index(target)
        except ValueError:
            raise CommandError(message) from None
