"""
Helpers shared by the clientbook tests.
"""

from collections import Counter

from clientbook.model import Model
from clientbook.types import Tag


def tags(*names: str) -> frozenset[Tag]:
    return frozenset(Tag(n) for n in names)


def expected_counts(model: Model) -> dict[str, tuple[int, int]]:
    """Tag counts computed by walking every live entity."""
    client_counts = Counter(t.name for c in model.clients for t in c.get_tags())
    project_counts = Counter(t.name for p in model.projects for t in p.get_tags())
    names = set(client_counts) | set(project_counts)
    return {n: (client_counts[n], project_counts[n]) for n in names}


def index_counts(model: Model) -> dict[str, tuple[int, int]]:
    return {r.tag.name: (r.client_count, r.project_count) for r in model.tag_index}
