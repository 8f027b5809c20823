"""
Data types for clientbook.

Value validators expose a boolean contract (``is_valid_*``) so the query
builders can drop bad tokens individually; the single-value parsers
(``Status.parse``, ``parse_deadline``) raise ``ParseError`` instead.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Optional

from .errors import ParseError


_TAG_NAME_RE = re.compile(r"^[^\W_]+$")
_NAME_RE = re.compile(r"^[^\W_](?:[^\W_]| )*$")
_PHONE_RE = re.compile(r"^\d{3,}$")
# local-part: alphanumerics separated by +_.- ; domain: dot-separated labels
_EMAIL_RE = re.compile(
    r"^[^\W_]+([+_.-][^\W_]+)*@[^\W_]+(-[^\W_]+)*(\.[^\W_]+(-[^\W_]+)*)*\.[^\W_]{2,}$"
)

DEADLINE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d")


@dataclass(frozen=True)
class Tag:
    """A label attachable to clients and projects, identified by its casefolded name."""
    name: str

    def __post_init__(self):
        normalized = self.name.strip().casefold()
        if not Tag.is_valid_name(normalized):
            raise ValueError(f"Invalid tag name: {self.name!r}")
        object.__setattr__(self, "name", normalized)

    @staticmethod
    def is_valid_name(text: str) -> bool:
        """Tag names are a single alphanumeric word."""
        return bool(_TAG_NAME_RE.match(text))

    def __str__(self) -> str:
        return f"[{self.name}]"


class Name:
    MESSAGE_CONSTRAINTS = (
        "Names should only contain alphanumeric characters and spaces, and it should not be blank"
    )

    @staticmethod
    def is_valid_name(text: str) -> bool:
        return bool(_NAME_RE.match(text))


class Title:
    MESSAGE_CONSTRAINTS = "Titles can take any values, and it should not be blank"

    @staticmethod
    def is_valid_title(text: str) -> bool:
        return bool(text) and not text[0].isspace()


class Phone:
    MESSAGE_CONSTRAINTS = "Phone numbers should only contain numbers, and it should be at least 3 digits long"

    @staticmethod
    def is_valid_phone(text: str) -> bool:
        return bool(_PHONE_RE.match(text))


class Email:
    MESSAGE_CONSTRAINTS = "Emails should be of the format local-part@domain"

    @staticmethod
    def is_valid_email(text: str) -> bool:
        return bool(_EMAIL_RE.match(text))


MESSAGE_STATUS_CONSTRAINTS = "Status should be one of: not-started, in-progress, done"


class Status(Enum):
    NOT_STARTED = "not started"
    IN_PROGRESS = "in progress"
    DONE = "done"

    @classmethod
    def parse(cls, text: str) -> "Status":
        """Parse a status, accepting any case and '-', '_' or ' ' as separator."""
        key = re.sub(r"[\s_-]+", " ", text.strip()).casefold()
        for status in cls:
            if status.value == key:
                return status
        raise ParseError(MESSAGE_STATUS_CONSTRAINTS)

    def __str__(self) -> str:
        return self.value


MESSAGE_DEADLINE_CONSTRAINTS = "Deadlines should be dates in the format YYYY-MM-DD"


def parse_deadline(text: str) -> date:
    """Parse a deadline date (YYYY-MM-DD or YYYY/MM/DD)."""
    value = text.strip()
    for fmt in DEADLINE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise ParseError(MESSAGE_DEADLINE_CONSTRAINTS)


@dataclass(frozen=True)
class Client:
    """A client. Identity is the name; tags never take part in it."""
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    tags: frozenset[Tag] = field(default_factory=frozenset)

    def get_tags(self) -> frozenset[Tag]:
        return self.tags

    def is_same_client(self, other: Optional["Client"]) -> bool:
        return other is not None and other.name.casefold() == self.name.casefold()

    def __str__(self) -> str:
        parts = [self.name]
        if self.phone:
            parts.append(f"Phone: {self.phone}")
        if self.email:
            parts.append(f"Email: {self.email}")
        if self.tags:
            parts.append("Tags: " + "".join(str(t) for t in sorted_tags(self.tags)))
        return "; ".join(parts)


@dataclass(frozen=True)
class Project:
    """A project, optionally linked to a client. Identity is the title."""
    title: str
    deadline: Optional[date] = None
    status: Status = Status.NOT_STARTED
    client: Optional[Client] = None
    tags: frozenset[Tag] = field(default_factory=frozenset)

    def get_tags(self) -> frozenset[Tag]:
        return self.tags

    @property
    def client_name(self) -> Optional[str]:
        return self.client.name if self.client else None

    def is_same_project(self, other: Optional["Project"]) -> bool:
        return other is not None and other.title.casefold() == self.title.casefold()

    def linked_to(self, client: Optional[Client]) -> "Project":
        return replace(self, client=client)

    def __str__(self) -> str:
        parts = [self.title, f"Status: {self.status}"]
        if self.deadline:
            parts.append(f"Deadline: {self.deadline.isoformat()}")
        if self.client:
            parts.append(f"Client: {self.client.name}")
        if self.tags:
            parts.append("Tags: " + "".join(str(t) for t in sorted_tags(self.tags)))
        return "; ".join(parts)


def sorted_tags(tags) -> list[Tag]:
    """Tags in display order."""
    return sorted(tags, key=lambda t: t.name)
