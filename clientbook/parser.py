"""
Command-line grammar for clientbook.

A command line is a command word followed by prefixed fields, e.g.::

    find-project n/website t/urgent s/in-progress from/2024-01-01
    edit-client 2 p/91234567 t/

Find queries are tolerant: each keyword or tag token is validated on its
own and invalid tokens are dropped. Single-value fields (status, from, to)
are parsed strictly, because silently dropping the only value would give an
unfiltered result.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, Optional

from .commands import (
    AddClientCommand,
    AddProjectCommand,
    Command,
    DeleteClientCommand,
    DeleteProjectCommand,
    EditClientCommand,
    EditClientDescriptor,
    EditProjectCommand,
    EditProjectDescriptor,
    FindClientCommand,
    FindProjectCommand,
    ListClientCommand,
    ListProjectCommand,
    ListTagCommand,
    MESSAGE_NOT_EDITED,
)
from .errors import MESSAGE_NO_VALID_CRITERIA, ParseError, invalid_format
from .predicates import (
    CombinedPredicate,
    EntityPredicate,
    KeywordField,
    KeywordsPredicate,
    StatusPredicate,
    TagsPredicate,
    TimeWindowPredicate,
)
from .types import (
    Client,
    Email,
    Name,
    Phone,
    Project,
    Status,
    Tag,
    Title,
    parse_deadline,
)

PREFIX_NAME = "n/"
PREFIX_PHONE = "p/"
PREFIX_EMAIL = "e/"
PREFIX_TAG = "t/"
PREFIX_DEADLINE = "d/"
PREFIX_STATUS = "s/"
PREFIX_CLIENT = "c/"
PREFIX_START = "from/"
PREFIX_END = "to/"

MESSAGE_INVALID_INDEX = "Index is not a non-zero unsigned integer."
MESSAGE_UNKNOWN_COMMAND = "Unknown command"
MESSAGE_TAG_CONSTRAINTS = "Tag names should be alphanumeric"

HELP_TEXT = (
    "Commands: add-client, edit-client, delete-client, find-client, list-client, "
    "add-project, edit-project, delete-project, find-project, list-project, list-tag"
)


# -----------------------------------------------------------------------------
# Tokenizer
# -----------------------------------------------------------------------------

@dataclass
class ArgumentMultimap:
    """Values of each prefix in order of appearance, plus the preamble."""
    preamble: str = ""
    _values: dict[str, list[str]] = field(default_factory=dict)

    def put(self, prefix: str, value: str) -> None:
        self._values.setdefault(prefix, []).append(value)

    def get_value(self, prefix: str) -> Optional[str]:
        """Last value given for ``prefix``, or None if absent."""
        values = self._values.get(prefix)
        return values[-1] if values else None

    def get_all_values(self, prefix: str) -> list[str]:
        return list(self._values.get(prefix, []))

    def is_present(self, prefix: str) -> bool:
        return prefix in self._values


def tokenize(args: str, *prefixes: str) -> ArgumentMultimap:
    """
    Split ``args`` into prefix groups.

    A prefix only counts when preceded by whitespace, so ``a/b`` inside a
    value is left alone. Values and preamble are stripped.
    """
    text = " " + args
    positions: list[tuple[int, str]] = []
    for prefix in prefixes:
        for m in re.finditer(r"(?<=\s)" + re.escape(prefix), text):
            positions.append((m.start(), prefix))
    positions.sort()

    multimap = ArgumentMultimap()
    first = positions[0][0] if positions else len(text)
    multimap.preamble = text[:first].strip()
    for i, (start, prefix) in enumerate(positions):
        end = positions[i + 1][0] if i + 1 < len(positions) else len(text)
        multimap.put(prefix, text[start + len(prefix):end].strip())
    return multimap


# -----------------------------------------------------------------------------
# Field parsers
# -----------------------------------------------------------------------------

def parse_index(text: str) -> int:
    """Parse a 1-based index; raises ParseError unless a positive integer."""
    value = text.strip()
    if not (value.isascii() and value.isdigit()) or int(value) < 1:
        raise ParseError(MESSAGE_INVALID_INDEX)
    return int(value)


def parse_name(text: str) -> str:
    value = text.strip()
    if not Name.is_valid_name(value):
        raise ParseError(Name.MESSAGE_CONSTRAINTS)
    return value


def parse_title(text: str) -> str:
    value = text.strip()
    if not Title.is_valid_title(value):
        raise ParseError(Title.MESSAGE_CONSTRAINTS)
    return value


def parse_phone(text: str) -> str:
    value = text.strip()
    if not Phone.is_valid_phone(value):
        raise ParseError(Phone.MESSAGE_CONSTRAINTS)
    return value


def parse_email(text: str) -> str:
    value = text.strip()
    if not Email.is_valid_email(value):
        raise ParseError(Email.MESSAGE_CONSTRAINTS)
    return value


def parse_tag(text: str) -> Tag:
    value = text.strip()
    if not Tag.is_valid_name(value):
        raise ParseError(MESSAGE_TAG_CONSTRAINTS)
    return Tag(value)


def parse_tags(values: Iterable[str]) -> frozenset[Tag]:
    return frozenset(parse_tag(v) for v in values)


def parse_tags_for_edit(values: list[str]) -> Optional[frozenset[Tag]]:
    """
    Tags for an edit: None when no ``t/`` was given, an empty set when the
    only ``t/`` has no value (clear all tags), otherwise the parsed tags.
    """
    if not values:
        return None
    if len(values) == 1 and values[0] == "":
        return frozenset()
    return parse_tags(values)


# -----------------------------------------------------------------------------
# Query builders
# -----------------------------------------------------------------------------

FIND_CLIENT_PREFIXES = (PREFIX_NAME, PREFIX_TAG)
FIND_PROJECT_PREFIXES = (
    PREFIX_NAME, PREFIX_STATUS, PREFIX_START, PREFIX_END, PREFIX_TAG, PREFIX_CLIENT,
)


def _split_keywords(values: Iterable[str]) -> Iterator[str]:
    for value in values:
        yield from value.split(" ")


def _valid_tokens(values: Iterable[str], is_valid: Callable[[str], bool]) -> tuple[str, ...]:
    return tuple(token for token in _split_keywords(values) if is_valid(token))


def _check_query_format(multimap: ArgumentMultimap, prefixes: tuple[str, ...], usage: str) -> None:
    if not any(multimap.is_present(p) for p in prefixes) or multimap.preamble:
        raise invalid_format(usage)


def build_client_query(multimap: ArgumentMultimap) -> CombinedPredicate:
    """Build the AND-filter for a find-client command."""
    _check_query_format(multimap, FIND_CLIENT_PREFIXES, FindClientCommand.MESSAGE_USAGE)
    predicates: list[EntityPredicate] = []

    tags = _valid_tokens(multimap.get_all_values(PREFIX_TAG), Tag.is_valid_name)
    if tags:
        predicates.append(TagsPredicate(tags))

    names = _valid_tokens(multimap.get_all_values(PREFIX_NAME), Name.is_valid_name)
    if names:
        predicates.append(KeywordsPredicate(names, KeywordField.NAME))

    if not predicates:
        raise ParseError(MESSAGE_NO_VALID_CRITERIA)
    return CombinedPredicate(predicates)


def build_project_query(multimap: ArgumentMultimap) -> CombinedPredicate:
    """Build the AND-filter for a find-project command."""
    _check_query_format(multimap, FIND_PROJECT_PREFIXES, FindProjectCommand.MESSAGE_USAGE)
    predicates: list[EntityPredicate] = []

    tags = _valid_tokens(multimap.get_all_values(PREFIX_TAG), Tag.is_valid_name)
    if tags:
        predicates.append(TagsPredicate(tags))

    titles = _valid_tokens(multimap.get_all_values(PREFIX_NAME), Title.is_valid_title)
    if titles:
        predicates.append(KeywordsPredicate(titles, KeywordField.TITLE))

    client_names = _valid_tokens(multimap.get_all_values(PREFIX_CLIENT), Name.is_valid_name)
    if client_names:
        predicates.append(KeywordsPredicate(client_names, KeywordField.CLIENT_NAME))

    status = multimap.get_value(PREFIX_STATUS)
    if status is not None:
        predicates.append(StatusPredicate(Status.parse(status)))

    start = multimap.get_value(PREFIX_START)
    end = multimap.get_value(PREFIX_END)
    if start is not None or end is not None:
        predicates.append(TimeWindowPredicate(
            start=parse_deadline(start) if start is not None else None,
            end=parse_deadline(end) if end is not None else None,
        ))

    if not predicates:
        raise ParseError(MESSAGE_NO_VALID_CRITERIA)
    return CombinedPredicate(predicates)


# -----------------------------------------------------------------------------
# Command parsers
# -----------------------------------------------------------------------------

def _parse_indexed(args: str, usage: str, *prefixes: str) -> tuple[int, ArgumentMultimap]:
    multimap = tokenize(args, *prefixes)
    try:
        index = parse_index(multimap.preamble)
    except ParseError as e:
        raise invalid_format(usage) from e
    return index, multimap


def parse_add_client(args: str) -> AddClientCommand:
    multimap = tokenize(args, PREFIX_NAME, PREFIX_PHONE, PREFIX_EMAIL, PREFIX_TAG)
    if not multimap.is_present(PREFIX_NAME) or multimap.preamble:
        raise invalid_format(AddClientCommand.MESSAGE_USAGE)

    phone = multimap.get_value(PREFIX_PHONE)
    email = multimap.get_value(PREFIX_EMAIL)
    client = Client(
        name=parse_name(multimap.get_value(PREFIX_NAME)),
        phone=parse_phone(phone) if phone is not None else None,
        email=parse_email(email) if email is not None else None,
        tags=parse_tags_for_edit(multimap.get_all_values(PREFIX_TAG)) or frozenset(),
    )
    return AddClientCommand(client)


def parse_add_project(args: str) -> AddProjectCommand:
    multimap = tokenize(
        args, PREFIX_NAME, PREFIX_DEADLINE, PREFIX_STATUS, PREFIX_CLIENT, PREFIX_TAG,
    )
    if not multimap.is_present(PREFIX_NAME) or multimap.preamble:
        raise invalid_format(AddProjectCommand.MESSAGE_USAGE)

    deadline = multimap.get_value(PREFIX_DEADLINE)
    status = multimap.get_value(PREFIX_STATUS)
    client_name = multimap.get_value(PREFIX_CLIENT)
    project = Project(
        title=parse_title(multimap.get_value(PREFIX_NAME)),
        deadline=parse_deadline(deadline) if deadline is not None else None,
        status=Status.parse(status) if status is not None else Status.NOT_STARTED,
        tags=parse_tags_for_edit(multimap.get_all_values(PREFIX_TAG)) or frozenset(),
    )
    return AddProjectCommand(
        project,
        client_name=parse_name(client_name) if client_name is not None else None,
    )


def parse_edit_client(args: str) -> EditClientCommand:
    index, multimap = _parse_indexed(
        args, EditClientCommand.MESSAGE_USAGE,
        PREFIX_NAME, PREFIX_PHONE, PREFIX_EMAIL, PREFIX_TAG,
    )
    descriptor = EditClientDescriptor()
    if multimap.is_present(PREFIX_NAME):
        descriptor.name = parse_name(multimap.get_value(PREFIX_NAME))
    if multimap.is_present(PREFIX_PHONE):
        descriptor.phone = parse_phone(multimap.get_value(PREFIX_PHONE))
    if multimap.is_present(PREFIX_EMAIL):
        descriptor.email = parse_email(multimap.get_value(PREFIX_EMAIL))
    descriptor.tags = parse_tags_for_edit(multimap.get_all_values(PREFIX_TAG))

    if not descriptor.is_any_field_edited():
        raise ParseError(MESSAGE_NOT_EDITED)
    return EditClientCommand(index, descriptor)


def parse_edit_project(args: str) -> EditProjectCommand:
    index, multimap = _parse_indexed(
        args, EditProjectCommand.MESSAGE_USAGE,
        PREFIX_NAME, PREFIX_DEADLINE, PREFIX_STATUS, PREFIX_TAG,
    )
    descriptor = EditProjectDescriptor()
    if multimap.is_present(PREFIX_NAME):
        descriptor.title = parse_title(multimap.get_value(PREFIX_NAME))
    if multimap.is_present(PREFIX_DEADLINE):
        descriptor.deadline = parse_deadline(multimap.get_value(PREFIX_DEADLINE))
    if multimap.is_present(PREFIX_STATUS):
        descriptor.status = Status.parse(multimap.get_value(PREFIX_STATUS))
    descriptor.tags = parse_tags_for_edit(multimap.get_all_values(PREFIX_TAG))

    if not descriptor.is_any_field_edited():
        raise ParseError(MESSAGE_NOT_EDITED)
    return EditProjectCommand(index, descriptor)


def parse_delete_client(args: str) -> DeleteClientCommand:
    index, _ = _parse_indexed(args, DeleteClientCommand.MESSAGE_USAGE)
    return DeleteClientCommand(index)


def parse_delete_project(args: str) -> DeleteProjectCommand:
    index, _ = _parse_indexed(args, DeleteProjectCommand.MESSAGE_USAGE)
    return DeleteProjectCommand(index)


def parse_find_client(args: str) -> FindClientCommand:
    return FindClientCommand(build_client_query(tokenize(args, *FIND_CLIENT_PREFIXES)))


def parse_find_project(args: str) -> FindProjectCommand:
    return FindProjectCommand(build_project_query(tokenize(args, *FIND_PROJECT_PREFIXES)))


_PARSERS: dict[str, Callable[[str], Command]] = {
    AddClientCommand.COMMAND_WORD: parse_add_client,
    EditClientCommand.COMMAND_WORD: parse_edit_client,
    DeleteClientCommand.COMMAND_WORD: parse_delete_client,
    FindClientCommand.COMMAND_WORD: parse_find_client,
    ListClientCommand.COMMAND_WORD: lambda args: ListClientCommand(),
    AddProjectCommand.COMMAND_WORD: parse_add_project,
    EditProjectCommand.COMMAND_WORD: parse_edit_project,
    DeleteProjectCommand.COMMAND_WORD: parse_delete_project,
    FindProjectCommand.COMMAND_WORD: parse_find_project,
    ListProjectCommand.COMMAND_WORD: lambda args: ListProjectCommand(),
    ListTagCommand.COMMAND_WORD: lambda args: ListTagCommand(),
}

COMMAND_WORDS = tuple(_PARSERS)


def parse_command(line: str) -> Command:
    """Parse one full command line into a Command."""
    stripped = line.strip()
    if not stripped:
        raise invalid_format(HELP_TEXT)
    word, _, args = stripped.partition(" ")
    parser = _PARSERS.get(word.casefold())
    if parser is None:
        raise ParseError(f"{MESSAGE_UNKNOWN_COMMAND}: {word}")
    return parser(args)
