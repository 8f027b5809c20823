"""
Executable commands.

Each command is built by the parser from one line of input and applied to
a Model with ``execute``. Commands either complete or raise a
ClientbookError before changing anything.
"""

from dataclasses import dataclass, replace
from datetime import date
from typing import Optional, Protocol

from .errors import CommandError
from .model import Model
from .predicates import SHOW_ALL, EntityPredicate
from .types import Client, Project, Status, Tag

MESSAGE_INVALID_CLIENT_INDEX = "The client index provided is invalid"
MESSAGE_INVALID_PROJECT_INDEX = "The project index provided is invalid"
MESSAGE_NOT_EDITED = "At least one field to edit must be provided."
MESSAGE_NO_SUCH_CLIENT = "No client named '%s' exists"

CLIENTS_VIEW = "clients"
PROJECTS_VIEW = "projects"
TAGS_VIEW = "tags"


@dataclass(frozen=True)
class CommandResult:
    """Feedback for the user, plus which list should be shown."""
    feedback: str
    view: Optional[str] = None


class Command(Protocol):
    COMMAND_WORD: str
    MESSAGE_USAGE: str

    def execute(self, model: Model) -> CommandResult: ...


def _select(items: list, index: int, message: str):
    """Item at 1-based ``index`` of a displayed list."""
    if index < 1 or index > len(items):
        raise CommandError(message)
    return items[index - 1]


# -----------------------------------------------------------------------------
# Edit descriptors
# -----------------------------------------------------------------------------

@dataclass
class EditClientDescriptor:
    """The client fields supplied to an edit; None means unchanged."""
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    tags: Optional[frozenset[Tag]] = None

    def is_any_field_edited(self) -> bool:
        return any(v is not None for v in (self.name, self.phone, self.email, self.tags))

    def apply(self, client: Client) -> Client:
        return Client(
            name=self.name if self.name is not None else client.name,
            phone=self.phone if self.phone is not None else client.phone,
            email=self.email if self.email is not None else client.email,
            tags=self.tags if self.tags is not None else client.tags,
        )


@dataclass
class EditProjectDescriptor:
    """The project fields supplied to an edit; None means unchanged."""
    title: Optional[str] = None
    deadline: Optional[date] = None
    status: Optional[Status] = None
    tags: Optional[frozenset[Tag]] = None

    def is_any_field_edited(self) -> bool:
        return any(v is not None for v in (self.title, self.deadline, self.status, self.tags))

    def apply(self, project: Project) -> Project:
        return replace(
            project,
            title=self.title if self.title is not None else project.title,
            deadline=self.deadline if self.deadline is not None else project.deadline,
            status=self.status if self.status is not None else project.status,
            tags=self.tags if self.tags is not None else project.tags,
        )


# -----------------------------------------------------------------------------
# Client commands
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class AddClientCommand:
    COMMAND_WORD = "add-client"
    MESSAGE_USAGE = (
        "add-client: Adds a client to the client book.\n"
        "Parameters: n/NAME [p/PHONE] [e/EMAIL] [t/TAG]...\n"
        "Example: add-client n/John Doe p/98765432 e/johnd@example.com t/friends"
    )

    client: Client

    def execute(self, model: Model) -> CommandResult:
        model.add_client(self.client)
        return CommandResult(f"New client added: {self.client}", CLIENTS_VIEW)


@dataclass(frozen=True)
class EditClientCommand:
    COMMAND_WORD = "edit-client"
    MESSAGE_USAGE = (
        "edit-client: Edits the client identified by the index number used in the displayed client list. "
        "Existing values will be overwritten by the input values.\n"
        "Parameters: INDEX (must be a positive integer) [n/NAME] [p/PHONE] [e/EMAIL] [t/TAG]...\n"
        "Example: edit-client 1 p/91234567 e/johndoe@example.com"
    )

    index: int
    descriptor: EditClientDescriptor

    def execute(self, model: Model) -> CommandResult:
        target = _select(model.filtered_clients, self.index, MESSAGE_INVALID_CLIENT_INDEX)
        edited = self.descriptor.apply(target)
        model.set_client(target, edited)
        model.update_filtered_clients(SHOW_ALL)
        return CommandResult(f"Edited client: {edited}", CLIENTS_VIEW)


@dataclass(frozen=True)
class DeleteClientCommand:
    COMMAND_WORD = "delete-client"
    MESSAGE_USAGE = (
        "delete-client: Deletes the client identified by the index number used in the displayed client list.\n"
        "Parameters: INDEX (must be a positive integer)\n"
        "Example: delete-client 1"
    )

    index: int

    def execute(self, model: Model) -> CommandResult:
        target = _select(model.filtered_clients, self.index, MESSAGE_INVALID_CLIENT_INDEX)
        model.delete_client(target)
        return CommandResult(f"Deleted client: {target}", CLIENTS_VIEW)


@dataclass(frozen=True)
class FindClientCommand:
    COMMAND_WORD = "find-client"
    MESSAGE_USAGE = (
        "find-client: Finds all clients whose names contain any of the name keywords "
        "and that carry any of the tags (case-insensitive), and displays them as a list.\n"
        "Parameters: [n/NAME_KEYWORD]... [t/TAG]... (at least one)\n"
        "Example: find-client n/alice bob t/friends"
    )

    predicate: EntityPredicate

    def execute(self, model: Model) -> CommandResult:
        model.update_filtered_clients(self.predicate)
        count = len(model.filtered_clients)
        return CommandResult(f"{count} client(s) listed!", CLIENTS_VIEW)


@dataclass(frozen=True)
class ListClientCommand:
    COMMAND_WORD = "list-client"
    MESSAGE_USAGE = "list-client: Lists all clients."

    def execute(self, model: Model) -> CommandResult:
        model.update_filtered_clients(SHOW_ALL)
        return CommandResult("Listed all clients", CLIENTS_VIEW)


# -----------------------------------------------------------------------------
# Project commands
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class AddProjectCommand:
    COMMAND_WORD = "add-project"
    MESSAGE_USAGE = (
        "add-project: Adds a project to the client book.\n"
        "Parameters: n/TITLE [d/DEADLINE] [s/STATUS] [c/CLIENT_NAME] [t/TAG]...\n"
        "Example: add-project n/Sculpture d/2024-06-30 s/in-progress c/John Doe t/art"
    )

    project: Project
    client_name: Optional[str] = None

    def execute(self, model: Model) -> CommandResult:
        project = self.project
        if self.client_name is not None:
            client = model.find_client(self.client_name)
            if client is None:
                raise CommandError(MESSAGE_NO_SUCH_CLIENT % self.client_name)
            project = project.linked_to(client)
        model.add_project(project)
        return CommandResult(f"New project added: {project}", PROJECTS_VIEW)


@dataclass(frozen=True)
class EditProjectCommand:
    COMMAND_WORD = "edit-project"
    MESSAGE_USAGE = (
        "edit-project: Edits the project identified by the index number used in the displayed project list. "
        "Existing values will be overwritten by the input values.\n"
        "Parameters: INDEX (must be a positive integer) [n/TITLE] [d/DEADLINE] [s/STATUS] [t/TAG]...\n"
        "Example: edit-project 1 s/done t/"
    )

    index: int
    descriptor: EditProjectDescriptor

    def execute(self, model: Model) -> CommandResult:
        target = _select(model.filtered_projects, self.index, MESSAGE_INVALID_PROJECT_INDEX)
        edited = self.descriptor.apply(target)
        model.set_project(target, edited)
        model.update_filtered_projects(SHOW_ALL)
        return CommandResult(f"Edited project: {edited}", PROJECTS_VIEW)


@dataclass(frozen=True)
class DeleteProjectCommand:
    COMMAND_WORD = "delete-project"
    MESSAGE_USAGE = (
        "delete-project: Deletes the project identified by the index number used in the displayed project list.\n"
        "Parameters: INDEX (must be a positive integer)\n"
        "Example: delete-project 1"
    )

    index: int

    def execute(self, model: Model) -> CommandResult:
        target = _select(model.filtered_projects, self.index, MESSAGE_INVALID_PROJECT_INDEX)
        model.delete_project(target)
        return CommandResult(f"Deleted project: {target}", PROJECTS_VIEW)


@dataclass(frozen=True)
class FindProjectCommand:
    COMMAND_WORD = "find-project"
    MESSAGE_USAGE = (
        "find-project: Finds all projects matching every given field, and displays them as a list.\n"
        "Parameters: [n/TITLE_KEYWORD]... [t/TAG]... [s/STATUS] [from/START] [to/END] "
        "[c/CLIENT_NAME_KEYWORD]... (at least one)\n"
        "Example: find-project n/sculpture t/art s/done from/2024-01-01"
    )

    predicate: EntityPredicate

    def execute(self, model: Model) -> CommandResult:
        model.update_filtered_projects(self.predicate)
        count = len(model.filtered_projects)
        return CommandResult(f"{count} project(s) listed!", PROJECTS_VIEW)


@dataclass(frozen=True)
class ListProjectCommand:
    COMMAND_WORD = "list-project"
    MESSAGE_USAGE = "list-project: Lists all projects."

    def execute(self, model: Model) -> CommandResult:
        model.update_filtered_projects(SHOW_ALL)
        return CommandResult("Listed all projects", PROJECTS_VIEW)


@dataclass(frozen=True)
class ListTagCommand:
    COMMAND_WORD = "list-tag"
    MESSAGE_USAGE = "list-tag: Lists all tags in use with their client and project counts."

    def execute(self, model: Model) -> CommandResult:
        return CommandResult(f"{len(model.tag_index)} tag(s) in use", TAGS_VIEW)


MUTATING_COMMANDS = (
    AddClientCommand, EditClientCommand, DeleteClientCommand,
    AddProjectCommand, EditProjectCommand, DeleteProjectCommand,
)
