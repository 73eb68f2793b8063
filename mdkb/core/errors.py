from __future__ import annotations


class KnowledgeBaseError(Exception):
    """Base class for errors raised by mdkb."""


class InvalidReference(KnowledgeBaseError, LookupError):
    """A link was requested between markers that do not exist."""

    def __init__(self, marker_id: str):
        super().__init__(f"Unknown marker id: {marker_id!r}")
        self.marker_id = marker_id


class PersistenceError(KnowledgeBaseError):
    """
    Metadata could not be written to disk.

    `result` is set when the change itself already happened (a note was
    renamed or deleted) and only saving its metadata failed.
    """

    result = None


class InvalidName(KnowledgeBaseError, ValueError):
    """A category or note name is empty or not usable as a file name."""
