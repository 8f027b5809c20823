"""
Error types and error logging for clientbook.

Two separate families:
- ClientbookError: problems with user input or requested actions. The CLI
  shows the message and aborts the command with state unchanged.
- IndexInvariantError: the tag usage index has desynchronized from the
  entities it counts. These are defects, never user errors, and are logged
  with a full traceback.
"""

import os
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

ERROR_LOG_FILENAME = "clientbook-errors.log"
MESSAGE_INVALID_COMMAND_FORMAT = "Invalid command format! \n%s"
MESSAGE_NO_VALID_CRITERIA = "At least one valid parameter must be provided"


class ClientbookError(Exception):
    """Base class for errors caused by user input."""


class ParseError(ClientbookError):
    """Command text does not conform to the expected format."""


class CommandError(ClientbookError):
    """A parsed command cannot be executed against the current data."""


class DuplicateEntityError(CommandError):
    """A client or project with the same identity already exists."""


class StorageError(ClientbookError):
    """The data file could not be read or written."""


class IndexInvariantError(Exception):
    """Tag usage index and entity state have desynchronized."""


class TagNotFoundError(IndexInvariantError, KeyError):
    """A tag expected to be in the index has no record."""

    def __init__(self, tag_name: str):
        super().__init__(f"No usage record for tag '{tag_name}'")
        self.tag_name = tag_name

    def __str__(self) -> str:
        return self.args[0]


class DuplicateTagError(IndexInvariantError):
    """Two usage records share the same tag name."""


class TagUsageDesyncError(IndexInvariantError):
    """A usage counter would drop below zero."""


def invalid_format(usage: str) -> ParseError:
    """Build the format error that quotes a command's usage string."""
    return ParseError(MESSAGE_INVALID_COMMAND_FORMAT % usage)


def _error_log_path(store_path: Optional[Path] = None) -> Path:
    """Resolve error log path: the given store, else CLIENTBOOK_STORE_PATH, else ~/.clientbook."""
    if store_path is not None:
        return Path(store_path) / ERROR_LOG_FILENAME
    store = os.environ.get("CLIENTBOOK_STORE_PATH")
    if store:
        return Path(store) / ERROR_LOG_FILENAME
    return Path.home() / ".clientbook" / ERROR_LOG_FILENAME


def log_exception(exc: Exception, context: str = "", store_path: Optional[Path] = None) -> Path:
    """
    Log exception with full traceback to file.

    Args:
        exc: The exception that occurred
        context: Optional context string (e.g., command name)
        store_path: Store directory to log into, e.g. from --store

    Returns:
        Path to the error log file
    """
    log_path = _error_log_path(store_path)
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a") as f:
            f.write(f"\n{'='*60}\n")
            f.write(f"[{timestamp}]")
            if context:
                f.write(f" {context}")
            f.write("\n")
            f.write("".join(traceback.format_exception(exc)))
    except OSError:
        pass  # Can't write error log; the user still sees the message
    return log_path
