"""
Tag usage index.

Keeps one record per tag in use, with a client counter and a project
counter. The mutation layer calls the ``on_*`` hooks after every entity
add, edit or removal; after each call returns, every counter equals the
number of live entities of that kind carrying the tag, and a record exists
only while at least one counter is non-zero.

Every mutation checks all of its decrements before touching any counter,
so a call that raises leaves the index exactly as it was. Failures here are
IndexInvariantError subclasses: they mean the caller let entity state and
index state drift apart, which is a bug rather than bad input.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Callable, Iterable, Iterator, Optional

from .errors import DuplicateTagError, TagNotFoundError, TagUsageDesyncError
from .types import Client, Project, Tag

logger = logging.getLogger(__name__)

CLIENT = "client"
PROJECT = "project"


@dataclass(frozen=True)
class TagUsageRecord:
    """Usage counters for one tag. Identity is the tag name."""
    tag: Tag
    client_count: int = 0
    project_count: int = 0

    def __post_init__(self):
        if self.client_count < 0 or self.project_count < 0:
            raise TagUsageDesyncError(f"Negative usage count for tag '{self.tag.name}'")

    @property
    def total(self) -> int:
        return self.client_count + self.project_count

    def is_same_record(self, other: "TagUsageRecord") -> bool:
        return self.tag.name == other.tag.name

    def count_for(self, kind: str) -> int:
        return self.client_count if kind == CLIENT else self.project_count

    def adjusted(self, kind: str, delta: int) -> "TagUsageRecord":
        if kind == CLIENT:
            return replace(self, client_count=self.client_count + delta)
        return replace(self, project_count=self.project_count + delta)


@dataclass(frozen=True)
class TagUsageChange:
    """Tag names affected by one committed index mutation."""
    added: tuple[str, ...] = ()
    updated: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.added or self.updated or self.removed)


TagUsageListener = Callable[[TagUsageChange], None]


class TagUsageIndex:
    """Reference-counted index of the tags used by clients and projects."""

    def __init__(self):
        # dict keeps insertion order for display
        self._records: dict[str, TagUsageRecord] = {}
        self._listeners: list[TagUsageListener] = []
        self._pending: Optional[list[TagUsageChange]] = None

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def contains(self, tag: Tag) -> bool:
        return tag.name in self._records

    def record_for(self, tag: Tag) -> TagUsageRecord:
        """Return the record for ``tag``; raises TagNotFoundError if absent."""
        try:
            return self._records[tag.name]
        except KeyError:
            raise TagNotFoundError(tag.name) from None

    def records(self) -> list[TagUsageRecord]:
        """Snapshot of all records in insertion order."""
        return list(self._records.values())

    def __iter__(self) -> Iterator[TagUsageRecord]:
        return iter(self.records())

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, tag: object) -> bool:
        return isinstance(tag, Tag) and self.contains(tag)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TagUsageIndex):
            return NotImplemented
        return self.records() == other.records()

    # -------------------------------------------------------------------------
    # Entity hooks
    # -------------------------------------------------------------------------

    def on_client_added(self, client: Client) -> None:
        self._update(CLIENT, removed=(), added=client.get_tags())

    def on_client_removed(self, client: Client) -> None:
        self._update(CLIENT, removed=client.get_tags(), added=())

    def on_client_edited(self, old: Client, new: Client) -> None:
        """Remove all of ``old``'s tags, then add all of ``new``'s."""
        self._update(CLIENT, removed=old.get_tags(), added=new.get_tags())

    def on_project_added(self, project: Project) -> None:
        self._update(PROJECT, removed=(), added=project.get_tags())

    def on_project_removed(self, project: Project) -> None:
        self._update(PROJECT, removed=project.get_tags(), added=())

    def on_project_edited(self, old: Project, new: Project) -> None:
        """Remove all of ``old``'s tags, then add all of ``new``'s."""
        self._update(PROJECT, removed=old.get_tags(), added=new.get_tags())

    # -------------------------------------------------------------------------
    # Bulk load
    # -------------------------------------------------------------------------

    def replace_all(self, records: Iterable[TagUsageRecord]) -> None:
        """
        Replace the whole index with ``records``.

        Raises:
            DuplicateTagError: if two incoming records share a tag name.
        """
        incoming: dict[str, TagUsageRecord] = {}
        for record in records:
            if record.tag.name in incoming:
                raise DuplicateTagError(f"Duplicate usage record for tag '{record.tag.name}'")
            incoming[record.tag.name] = record

        previous = self._records
        self._records = {name: r for name, r in incoming.items() if r.total > 0}
        logger.debug("Tag index loaded with %d records", len(self._records))
        self._notify(TagUsageChange(
            added=tuple(n for n in self._records if n not in previous),
            updated=tuple(n for n in self._records if n in previous),
            removed=tuple(n for n in previous if n not in self._records),
        ))

    def rebuild(self, clients: Iterable[Client], projects: Iterable[Project]) -> None:
        """Recount every tag from the given entities."""
        records: dict[str, TagUsageRecord] = {}
        for kind, entities in ((CLIENT, clients), (PROJECT, projects)):
            for entity in entities:
                for tag in entity.get_tags():
                    record = records.get(tag.name) or TagUsageRecord(tag)
                    records[tag.name] = record.adjusted(kind, 1)
        self.replace_all(records.values())

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def subscribe(self, listener: TagUsageListener) -> Callable[[], None]:
        """Register ``listener`` for committed changes; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @contextmanager
    def deferred_notifications(self) -> Iterator[None]:
        """
        Hold listener calls until the block exits.

        The model wraps an index hook and the matching list update in this
        block, so listeners only run once both sides agree. Changes queued
        by a block that raises are dropped. Nested blocks share the
        outermost queue.
        """
        if self._pending is not None:
            yield
            return
        self._pending = []
        try:
            yield
        except BaseException:
            self._pending = None
            raise
        pending, self._pending = self._pending, None
        for change in pending:
            self._deliver(change)

    def _notify(self, change: TagUsageChange) -> None:
        if not change:
            return
        if self._pending is not None:
            self._pending.append(change)
        else:
            self._deliver(change)

    def _deliver(self, change: TagUsageChange) -> None:
        for listener in list(self._listeners):
            listener(change)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _update(self, kind: str, removed: Iterable[Tag], added: Iterable[Tag]) -> None:
        removed = set(removed)
        added = set(added)

        # Validate every decrement before mutating anything
        for tag in removed:
            record = self._records.get(tag.name)
            if record is None:
                raise TagNotFoundError(tag.name)
            if record.count_for(kind) < 1:
                raise TagUsageDesyncError(
                    f"{kind} count for tag '{tag.name}' would drop below zero"
                )

        new_names, updated_names, removed_names = [], [], []

        # Tags in both sets end where they started
        for tag in removed - added:
            record = self._records[tag.name].adjusted(kind, -1)
            if record.total == 0:
                del self._records[tag.name]
                removed_names.append(tag.name)
            else:
                self._records[tag.name] = record
                updated_names.append(tag.name)

        for tag in added - removed:
            record = self._records.get(tag.name)
            if record is None:
                record = TagUsageRecord(tag)
                new_names.append(tag.name)
            else:
                updated_names.append(tag.name)
            self._records[tag.name] = record.adjusted(kind, 1)

        if new_names or removed_names:
            logger.debug("Tag index %s update: +%s -%s", kind, new_names, removed_names)
        self._notify(TagUsageChange(
            added=tuple(new_names),
            updated=tuple(updated_names),
            removed=tuple(removed_names),
        ))
