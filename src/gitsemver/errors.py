"""Exception hierarchy and error reporting for gitsemver."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path


class GitSemverError(Exception):
    """Base exception for all gitsemver errors."""

    pass


class NoCommitsError(GitSemverError):
    """The head reference has no reachable commit (empty repository)."""

    def __init__(self, head: str = "HEAD", message: str | None = None) -> None:
        self.head = head
        if message is None:
            message = f"No commits reachable from '{head}'"
        super().__init__(message)


class InvalidVersionError(GitSemverError):
    """A version string could not be parsed as a semantic version.

    Also raised for a malformed prerelease label, with ``what`` set to
    "prerelease label".

    Attributes:
        text: The offending version text.
        commit_id: The commit whose annotation carried the text, if known.
        what: What the text was meant to be.
    """

    def __init__(
        self, text: str, commit_id: str | None = None, what: str = "semantic version"
    ) -> None:
        self.text = text
        self.commit_id = commit_id
        self.what = what
        message = f"Invalid {what} '{text}'"
        if commit_id:
            message += f" in annotation of commit {commit_id}"
        super().__init__(message)


class InvalidCountMethodError(GitSemverError):
    """An unrecognized counting policy was requested."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(
            f"Invalid count method {value!r}. Expected one of: merge, commit, manual"
        )


class RepositoryAccessError(GitSemverError):
    """Reading the commit graph or its annotations failed."""

    pass


def get_friendly_message(error: Exception) -> str:
    """Get a user-facing message for an error.

    Args:
        error: The exception to describe.

    Returns:
        A short message suitable for console output.
    """
    if isinstance(error, NoCommitsError):
        return f"Repository has no commits reachable from '{error.head}'."
    if isinstance(error, InvalidVersionError):
        where = f" on commit {error.commit_id[:10]}" if error.commit_id else ""
        return f"Annotation{where} sets an invalid {error.what}: '{error.text}'."
    if isinstance(error, InvalidCountMethodError):
        return str(error)
    if isinstance(error, RepositoryAccessError):
        return f"Could not read repository: {error}"
    return str(error) or type(error).__name__


def _get_log_file_path() -> Path:
    """Get the path to the error log file."""
    return Path.home() / ".gitsemver" / "errors.log"


def log_error(error: Exception | str, context: str = "") -> None:
    """Append an error to the log file.

    Args:
        error: The error (exception or string).
        context: Optional context about where the error occurred.
    """
    try:
        log_path = _get_log_file_path()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        if isinstance(error, str):
            message = error
            error_type = "Message"
        else:
            message = str(error)
            error_type = type(error).__name__

        log_entry = f"[{timestamp}] {error_type}"
        if context:
            log_entry += f" ({context})"
        log_entry += f": {message}\n"

        with open(log_path, "a", encoding="utf-8") as f:
            f.write(log_entry)
    except OSError:
        # Don't let logging errors crash the app
        pass
