"""
clientbook: a record-keeper for freelancers.

Clients and projects carry tags; a reference-counted tag index tracks how
many of each use every tag, and find commands compose field predicates
into AND-filters over the live lists.

Quick Start:
    from clientbook import Model, parse_command

    model = Model()
    parse_command("add-client n/Alex Tan t/friends").execute(model)
    parse_command("find-client t/friends").execute(model)
    print(model.filtered_clients)
"""

__version__ = "0.1.0"

from .errors import (
    ClientbookError,
    CommandError,
    DuplicateEntityError,
    DuplicateTagError,
    IndexInvariantError,
    ParseError,
    StorageError,
    TagNotFoundError,
    TagUsageDesyncError,
)
from .model import Model, ModelChange
from .parser import parse_command
from .predicates import CombinedPredicate
from .tag_index import TagUsageChange, TagUsageIndex, TagUsageRecord
from .types import Client, Project, Status, Tag

__all__ = [
    "ClientbookError",
    "CommandError",
    "DuplicateEntityError",
    "DuplicateTagError",
    "IndexInvariantError",
    "ParseError",
    "StorageError",
    "TagNotFoundError",
    "TagUsageDesyncError",
    "Model",
    "ModelChange",
    "parse_command",
    "CombinedPredicate",
    "TagUsageChange",
    "TagUsageIndex",
    "TagUsageRecord",
    "Client",
    "Project",
    "Status",
    "Tag",
]
