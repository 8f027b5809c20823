"""
Field predicates for find queries.

Each variant tests one field of a client or project and is built from
parameters that the query builders have already validated. All variants
share one capability, ``matches(entity) -> bool``, and are also callable
so they can be passed straight to ``filter()``.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Protocol, Sequence, runtime_checkable

from .types import Status


@runtime_checkable
class EntityPredicate(Protocol):
    def matches(self, entity) -> bool: ...


class KeywordField(Enum):
    """Text fields searchable by keyword."""
    NAME = "name"
    TITLE = "title"
    CLIENT_NAME = "client_name"

    def value_of(self, entity) -> Optional[str]:
        return getattr(entity, self.value, None)


def _words(text: str) -> set[str]:
    return {w.casefold() for w in text.split()}


@dataclass(frozen=True)
class KeywordsPredicate:
    """True if any keyword equals a whole word of the field, ignoring case."""
    keywords: tuple[str, ...]
    field: KeywordField

    def matches(self, entity) -> bool:
        text = self.field.value_of(entity)
        if not text:
            return False
        words = _words(text)
        return any(k.casefold() in words for k in self.keywords)

    __call__ = matches


@dataclass(frozen=True)
class TagsPredicate:
    """True if the entity carries at least one of the tag names."""
    tag_names: tuple[str, ...]

    def matches(self, entity) -> bool:
        wanted = {n.casefold() for n in self.tag_names}
        return any(t.name in wanted for t in entity.get_tags())

    __call__ = matches


@dataclass(frozen=True)
class StatusPredicate:
    status: Status

    def matches(self, entity) -> bool:
        return getattr(entity, "status", None) is self.status

    __call__ = matches


@dataclass(frozen=True)
class TimeWindowPredicate:
    """
    True if the deadline falls within [start, end], both inclusive.

    A missing bound leaves that side open; entities without a deadline
    never match.
    """
    start: Optional[date] = None
    end: Optional[date] = None

    def matches(self, entity) -> bool:
        deadline = getattr(entity, "deadline", None)
        if deadline is None:
            return False
        if self.start is not None and deadline < self.start:
            return False
        if self.end is not None and deadline > self.end:
            return False
        return True

    __call__ = matches


@dataclass(frozen=True)
class CombinedPredicate:
    """Logical AND over a non-empty, ordered list of predicates."""
    predicates: tuple[EntityPredicate, ...]

    def __init__(self, predicates: Sequence[EntityPredicate]):
        if not predicates:
            raise ValueError("CombinedPredicate needs at least one predicate")
        object.__setattr__(self, "predicates", tuple(predicates))

    def matches(self, entity) -> bool:
        return all(p.matches(entity) for p in self.predicates)

    __call__ = matches


@dataclass(frozen=True)
class _ShowAll:
    def matches(self, entity) -> bool:
        return True

    __call__ = matches


SHOW_ALL = _ShowAll()


def name_contains(*keywords: str) -> KeywordsPredicate:
    return KeywordsPredicate(tuple(keywords), KeywordField.NAME)


def title_contains(*keywords: str) -> KeywordsPredicate:
    return KeywordsPredicate(tuple(keywords), KeywordField.TITLE)


def client_name_contains(*keywords: str) -> KeywordsPredicate:
    return KeywordsPredicate(tuple(keywords), KeywordField.CLIENT_NAME)
