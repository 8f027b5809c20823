"""
Tests for the command grammar: tokenizer, find query builders and
edit/add/delete parsing.
"""

from datetime import date

import pytest

from clientbook.commands import (
    AddClientCommand,
    AddProjectCommand,
    DeleteClientCommand,
    EditClientCommand,
    EditProjectCommand,
    FindClientCommand,
    FindProjectCommand,
    ListTagCommand,
    MESSAGE_NOT_EDITED,
)
from clientbook.errors import MESSAGE_NO_VALID_CRITERIA, ParseError
from clientbook.parser import (
    FIND_PROJECT_PREFIXES,
    PREFIX_NAME,
    PREFIX_TAG,
    build_client_query,
    build_project_query,
    parse_command,
    parse_index,
    parse_tags_for_edit,
    tokenize,
)
from clientbook.predicates import (
    CombinedPredicate,
    KeywordField,
    KeywordsPredicate,
    StatusPredicate,
    TagsPredicate,
    TimeWindowPredicate,
)
from clientbook.types import Status, Tag

from helpers import tags


class TestTokenize:

    def test_preamble_and_values(self):
        multimap = tokenize("1 n/Alex Tan t/a t/b", PREFIX_NAME, PREFIX_TAG)
        assert multimap.preamble == "1"
        assert multimap.get_value(PREFIX_NAME) == "Alex Tan"
        assert multimap.get_all_values(PREFIX_TAG) == ["a", "b"]

    def test_last_value_wins(self):
        multimap = tokenize(" n/first n/second", PREFIX_NAME)
        assert multimap.get_value(PREFIX_NAME) == "second"

    def test_prefix_needs_leading_space(self):
        multimap = tokenize(" n/top/p/x", PREFIX_NAME, "p/")
        assert multimap.get_value(PREFIX_NAME) == "top/p/x"
        assert not multimap.is_present("p/")

    def test_empty_value(self):
        multimap = tokenize(" t/", PREFIX_TAG)
        assert multimap.is_present(PREFIX_TAG)
        assert multimap.get_all_values(PREFIX_TAG) == [""]

    def test_absent_prefix(self):
        multimap = tokenize("hello", PREFIX_TAG)
        assert multimap.get_value(PREFIX_TAG) is None
        assert multimap.preamble == "hello"


class TestFindClientQuery:
    """Tolerant keyword/tag filters for find-client."""

    def _build(self, args):
        return build_client_query(tokenize(args, PREFIX_NAME, PREFIX_TAG))

    def test_tags_and_names(self):
        predicate = self._build(" n/alex bee t/friends")
        assert predicate == CombinedPredicate([
            TagsPredicate(("friends",)),
            KeywordsPredicate(("alex", "bee"), KeywordField.NAME),
        ])

    def test_invalid_tag_token_dropped(self):
        predicate = self._build(" t/fri#nds colleague")
        assert predicate == CombinedPredicate([TagsPredicate(("colleague",))])

    def test_repeated_prefix_values_are_merged(self):
        predicate = self._build(" t/a t/b c")
        assert predicate.predicates[0] == TagsPredicate(("a", "b", "c"))

    def test_all_tokens_invalid(self):
        with pytest.raises(ParseError, match=MESSAGE_NO_VALID_CRITERIA):
            self._build(" t/#bad n/@@")

    def test_no_prefix_is_format_error(self):
        with pytest.raises(ParseError, match="find-client"):
            self._build(" ")

    def test_preamble_is_format_error(self):
        with pytest.raises(ParseError, match="Invalid command format"):
            self._build("alex n/alex")


class TestFindProjectQuery:
    """Project filters, including the strict single-value fields."""

    def _build(self, args):
        return build_project_query(tokenize(args, *FIND_PROJECT_PREFIXES))

    def test_status_and_open_ended_window(self):
        predicate = self._build(" s/done from/2024-01-01")
        assert predicate == CombinedPredicate([
            StatusPredicate(Status.DONE),
            TimeWindowPredicate(start=date(2024, 1, 1), end=None),
        ])

    def test_end_only_window(self):
        predicate = self._build(" to/2024/12/31")
        assert predicate == CombinedPredicate([TimeWindowPredicate(None, date(2024, 12, 31))])

    def test_field_order(self):
        predicate = self._build(" c/alex n/site t/web s/in-progress")
        kinds = [type(p) for p in predicate.predicates]
        assert kinds == [TagsPredicate, KeywordsPredicate, KeywordsPredicate, StatusPredicate]
        assert predicate.predicates[1].field is KeywordField.TITLE
        assert predicate.predicates[2].field is KeywordField.CLIENT_NAME

    def test_bad_status_is_error(self):
        with pytest.raises(ParseError, match="Status"):
            self._build(" t/web s/finished")

    def test_empty_status_is_error(self):
        with pytest.raises(ParseError):
            self._build(" s/")

    def test_bad_date_is_error(self):
        with pytest.raises(ParseError, match="Deadline"):
            self._build(" from/yesterday")

    def test_invalid_keywords_with_valid_status(self):
        predicate = self._build(" t/#x s/done")
        assert predicate == CombinedPredicate([StatusPredicate(Status.DONE)])

    def test_all_invalid_without_single_value_field(self):
        with pytest.raises(ParseError, match=MESSAGE_NO_VALID_CRITERIA):
            self._build(" t/#x c/@y")


class TestIndexAndTags:

    @pytest.mark.parametrize("text", ["0", "-1", "a", "1 2", "", "+1", "²", "١"])
    def test_invalid_index(self, text):
        with pytest.raises(ParseError):
            parse_index(text)

    def test_valid_index(self):
        assert parse_index(" 3 ") == 3

    def test_tags_for_edit(self):
        assert parse_tags_for_edit([]) is None
        assert parse_tags_for_edit([""]) == frozenset()
        assert parse_tags_for_edit(["a", "B"]) == tags("a", "b")

    def test_invalid_tag_for_edit(self):
        with pytest.raises(ParseError):
            parse_tags_for_edit(["a", ""])


class TestParseCommand:
    """Dispatch on the command word."""

    def test_find_commands(self):
        assert isinstance(parse_command("find-client n/alex"), FindClientCommand)
        assert isinstance(parse_command("find-project s/done"), FindProjectCommand)

    def test_add_client(self):
        command = parse_command("add-client n/Alex Tan p/98765432 e/alex@example.com t/friends t/Gym")
        assert isinstance(command, AddClientCommand)
        assert command.client.name == "Alex Tan"
        assert command.client.tags == tags("friends", "gym")

    def test_add_client_requires_name(self):
        with pytest.raises(ParseError, match="add-client"):
            parse_command("add-client p/123")

    def test_add_client_bad_phone(self):
        with pytest.raises(ParseError, match="Phone"):
            parse_command("add-client n/Alex p/12ab")

    def test_add_project(self):
        command = parse_command("add-project n/Logo design d/2024-05-01 s/done c/Alex Tan t/art")
        assert isinstance(command, AddProjectCommand)
        assert command.project.deadline == date(2024, 5, 1)
        assert command.project.status is Status.DONE
        assert command.client_name == "Alex Tan"

    def test_edit_client(self):
        command = parse_command("edit-client 2 p/91234567 t/")
        assert isinstance(command, EditClientCommand)
        assert command.index == 2
        assert command.descriptor.phone == "91234567"
        assert command.descriptor.tags == frozenset()

    def test_edit_client_no_fields(self):
        with pytest.raises(ParseError, match=MESSAGE_NOT_EDITED):
            parse_command("edit-client 1")

    def test_edit_client_bad_index(self):
        with pytest.raises(ParseError, match="edit-client"):
            parse_command("edit-client zero n/Alex")

    def test_edit_project(self):
        command = parse_command("edit-project 1 s/in progress t/web")
        assert isinstance(command, EditProjectCommand)
        assert command.descriptor.status is Status.IN_PROGRESS
        assert command.descriptor.tags == frozenset({Tag("web")})

    def test_delete_client(self):
        assert parse_command("delete-client 4") == DeleteClientCommand(4)

    def test_delete_client_superscript_index(self):
        with pytest.raises(ParseError, match="delete-client"):
            parse_command("delete-client ²")

    def test_list_tag(self):
        assert isinstance(parse_command("LIST-TAG"), ListTagCommand)

    def test_unknown_command(self):
        with pytest.raises(ParseError, match="Unknown command"):
            parse_command("frobnicate")

    def test_blank_line(self):
        with pytest.raises(ParseError):
            parse_command("   ")
