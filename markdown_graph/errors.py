"""
Exception types raised while turning markdown corpora into graphs.

Single-document failures (`DocumentNotFoundError`, `MarkdownParsingError`) are
recoverable: callers log them and move on to the next document. Corpus-level
failures (`DirectoryNotFoundError`, `RepositoryConfigurationError`) are fatal
and surface before any document is processed.
"""

from __future__ import annotations


class MarkdownGraphError(Exception):
    """Base class for every error raised by `markdown_graph`."""


class DocumentNotFoundError(MarkdownGraphError):
    """A document reference points at content that no longer exists."""

    def __init__(self, document_id: str, repository_description: str) -> None:
        super().__init__(
            f"Cannot load document {document_id}: does not exist in {repository_description}"
        )
        self.document_id = document_id


class DirectoryNotFoundError(MarkdownGraphError):
    """The directory backing a file repository does not exist."""

    def __init__(self, directory: str) -> None:
        super().__init__(f"Directory does not exist: {directory}")
        self.directory = directory


class MarkdownParsingError(MarkdownGraphError):
    """A document exists but could not be read or decoded."""

    def __init__(self, filename: str, cause: Exception) -> None:
        super().__init__(f"Failed to parse markdown in {filename}: {cause}")
        self.filename = filename


class RepositoryConfigurationError(MarkdownGraphError):
    """The corpus source is unknown or incompletely configured."""


class GraphValidationError(MarkdownGraphError):
    """A serialized graph does not match the output schema."""

    def __init__(self, messages: list[str]) -> None:
        super().__init__("Graph failed schema validation: " + "; ".join(messages))
        self.messages = messages
