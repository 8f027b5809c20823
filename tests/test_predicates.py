"""
Tests for field predicates and their AND composition.
"""

from datetime import date

import pytest

from clientbook.predicates import (
    SHOW_ALL,
    CombinedPredicate,
    EntityPredicate,
    KeywordField,
    KeywordsPredicate,
    StatusPredicate,
    TagsPredicate,
    TimeWindowPredicate,
    client_name_contains,
    name_contains,
    title_contains,
)
from clientbook.types import Client, Project, Status

from helpers import tags


class TestKeywordsPredicate:
    """Whole-word, case-insensitive keyword matching."""

    def test_matches_any_keyword(self, alex):
        assert name_contains("nobody", "alex").matches(alex)

    def test_case_insensitive(self, alex):
        assert name_contains("YEOH").matches(alex)

    def test_substring_does_not_match(self, alex):
        assert not name_contains("Ale").matches(alex)
        assert not name_contains("Yeo").matches(alex)

    def test_title_keywords(self, website):
        assert title_contains("website").matches(website)
        assert not title_contains("web").matches(website)

    def test_linked_client_name(self, website, sculpture):
        predicate = client_name_contains("alex")
        assert predicate.matches(website)
        assert not predicate.matches(sculpture)  # no linked client

    def test_equality(self):
        assert KeywordsPredicate(("a",), KeywordField.NAME) == name_contains("a")
        assert name_contains("a") != title_contains("a")


class TestTagsPredicate:

    def test_intersection(self, bee):
        assert TagsPredicate(("colleague", "other")).matches(bee)

    def test_no_common_tag(self, bee):
        assert not TagsPredicate(("gym",)).matches(bee)

    def test_tag_names_ignore_case(self, bee):
        assert TagsPredicate(("Friends",)).matches(bee)

    def test_untagged_entity(self):
        assert not TagsPredicate(("web",)).matches(Client("Cee"))


class TestStatusPredicate:

    def test_exact_status(self, website, sculpture):
        predicate = StatusPredicate(Status.DONE)
        assert predicate.matches(sculpture)
        assert not predicate.matches(website)


class TestTimeWindowPredicate:
    """Inclusive bounds, either side optional."""

    def test_inclusive_bounds(self, website):
        assert TimeWindowPredicate(date(2024, 3, 1), date(2024, 3, 1)).matches(website)

    def test_outside_window(self, website):
        assert not TimeWindowPredicate(date(2024, 3, 2), None).matches(website)
        assert not TimeWindowPredicate(None, date(2024, 2, 29)).matches(website)

    def test_open_upper_bound(self, website, sculpture):
        predicate = TimeWindowPredicate(start=date(2024, 1, 1))
        assert predicate.matches(website)
        assert predicate.matches(sculpture)

    def test_no_deadline_never_matches(self):
        assert not TimeWindowPredicate(None, None).matches(Project("Someday"))


class TestCombinedPredicate:
    """Logical AND over the member predicates."""

    def test_empty_list_rejected(self):
        with pytest.raises(ValueError):
            CombinedPredicate([])

    @pytest.mark.parametrize("members", [
        [StatusPredicate(Status.DONE)],
        [StatusPredicate(Status.DONE), TagsPredicate(("art",))],
        [StatusPredicate(Status.DONE), TagsPredicate(("web",))],
        [TimeWindowPredicate(start=date(2024, 1, 1)), title_contains("company", "garden")],
        [client_name_contains("alex"), TagsPredicate(("urgent",)), StatusPredicate(Status.IN_PROGRESS)],
    ])
    def test_and_of_members(self, members, website, sculpture):
        combined = CombinedPredicate(members)
        for project in (website, sculpture, Project("Empty")):
            assert combined.matches(project) == all(p.matches(project) for p in members)

    def test_usable_with_filter(self, website, sculpture):
        combined = CombinedPredicate([TagsPredicate(("art",))])
        assert list(filter(combined, [website, sculpture])) == [sculpture]

    def test_equality_and_order(self):
        a, b = StatusPredicate(Status.DONE), TagsPredicate(("x",))
        assert CombinedPredicate([a, b]) == CombinedPredicate([a, b])
        assert CombinedPredicate([a, b]).predicates == (a, b)

    def test_variants_share_capability(self):
        for predicate in (
            name_contains("a"), TagsPredicate(("a",)), StatusPredicate(Status.DONE),
            TimeWindowPredicate(), CombinedPredicate([SHOW_ALL]), SHOW_ALL,
        ):
            assert isinstance(predicate, EntityPredicate)

    def test_client_with_tags_helper(self):
        client = Client("Dee", tags=tags("a"))
        assert CombinedPredicate([TagsPredicate(("a",)), name_contains("dee")]).matches(client)
