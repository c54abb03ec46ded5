"""
Repositories enumerate and load markdown documents for graph building.

Two sources are supported: an in-memory mapping of id to markdown text
(handy for tests and generated content) and a directory tree of `.md`
files. Both hand out document references tagged with their `kind`; a
repository only accepts references of its own kind.
"""

from __future__ import annotations  # Enables postponed evaluation of type annotations

import asyncio
import hashlib  # For generating SHA256 hashes of document content
import logging
import os
import re
from pathlib import Path  # For object-oriented filesystem paths
from typing import AsyncIterator, Dict, Iterable, List, Mapping, Optional, Protocol

from .config import DEFAULT_EXCLUDES, GardenConfig
from .errors import (
    DirectoryNotFoundError,
    DocumentNotFoundError,
    MarkdownParsingError,
    RepositoryConfigurationError,
)
from .markdown_parser import read_front_matter
from .models import Document, DocumentReference, FileDocumentReference, MemoryDocumentReference

LOGGER = logging.getLogger(__name__)

MARKDOWN_SUFFIX = ".md"

_SEPARATOR_PATTERN = re.compile(r"[/\\]")


def content_hash(data: bytes | str) -> str:
    """SHA256 digest of document content, used for change detection."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def to_document(reference: DocumentReference, raw_text: str) -> Document:
    """
    Builds a `Document` from raw markdown, splitting off the front matter.
    """
    metadata, content = read_front_matter(raw_text)
    return Document(id=reference.id, hash=reference.hash, content=content, metadata=metadata)


class MarkdownRepository(Protocol):
    """The enumeration and load collaborators the graph builders rely on."""

    def description(self) -> str: ...

    def find_all(self) -> AsyncIterator[DocumentReference]: ...

    async def load_document(self, reference: DocumentReference) -> Document: ...

    def find(self, document_id: str) -> DocumentReference: ...

    def to_document_reference(self, name: str) -> DocumentReference: ...


class InMemoryRepository:
    """
    Serves markdown documents held in a dictionary.

    Keys are normalized to lowercase ids without a `.md` suffix.
    """

    def __init__(self, content: Mapping[str, str]) -> None:
        self._content: Dict[str, str] = {
            self.normalize_id(key): value for key, value in content.items()
        }

    @staticmethod
    def normalize_id(name: str) -> str:
        if name.endswith(MARKDOWN_SUFFIX):
            name = name[: -len(MARKDOWN_SUFFIX)]
        return name.lower()

    def description(self) -> str:
        return "in-memory repository"

    def to_document_reference(self, name: str) -> MemoryDocumentReference:
        document_id = self.normalize_id(name)
        return MemoryDocumentReference(id=document_id, hash=content_hash(self._content.get(document_id, "")))

    def find(self, document_id: str) -> MemoryDocumentReference:
        return self.to_document_reference(document_id)

    async def find_all(self) -> AsyncIterator[MemoryDocumentReference]:
        for document_id in list(self._content):
            yield self.to_document_reference(document_id)

    async def load_document(self, reference: DocumentReference) -> Document:
        if reference.kind != "memory":
            raise DocumentNotFoundError(reference.id, self.description())
        raw = self._content.get(reference.id)
        if raw is None:
            raise DocumentNotFoundError(reference.id, self.description())
        return to_document(reference, raw)

    def put(self, name: str, content: str) -> MemoryDocumentReference:
        """Adds or replaces a document; returns its fresh reference."""
        self._content[self.normalize_id(name)] = content
        return self.to_document_reference(name)

    def delete(self, name: str) -> None:
        self._content.pop(self.normalize_id(name), None)

    def document_ids(self) -> List[str]:
        return list(self._content)

    def __len__(self) -> int:
        return len(self._content)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.normalize_id(name) in self._content


class FileRepository:
    """
    Serves the `.md` files found below a directory.

    Document ids are the relative path without the `.md` suffix, with path
    separators replaced by dashes, in lowercase (`notes/Daily.md` becomes
    `notes-daily`).
    """

    def __init__(
        self,
        directory: Path | str,
        *,
        excludes: Optional[Iterable[str]] = None,
        include_hidden: bool = False,
    ) -> None:
        self.directory = Path(directory).resolve()
        self.excludes = set(excludes if excludes is not None else DEFAULT_EXCLUDES)
        self.include_hidden = include_hidden
        if not self.directory.is_dir():
            raise DirectoryNotFoundError(str(self.directory))
        self._filenames: Dict[str, str] = {}

    def description(self) -> str:
        return f"file repository at {self.directory}"

    @staticmethod
    def normalize_filename(filename: str) -> str:
        if filename.endswith(MARKDOWN_SUFFIX):
            filename = filename[: -len(MARKDOWN_SUFFIX)]
        return _SEPARATOR_PATTERN.sub("-", filename).lower()

    def relative_name(self, path: Path | str) -> str:
        """Path relative to the repository root, in POSIX form."""
        candidate = Path(path)
        if candidate.is_absolute():
            candidate = candidate.relative_to(self.directory)
        return candidate.as_posix()

    def _hash_file(self, filename: str) -> str:
        try:
            return content_hash((self.directory / filename).read_bytes())
        except OSError:
            return ""

    def to_document_reference(self, name: Path | str) -> FileDocumentReference:
        filename = self.relative_name(name)
        document_id = self.normalize_filename(filename)
        self._filenames[document_id] = filename
        return FileDocumentReference(id=document_id, hash=self._hash_file(filename), filename=filename)

    def find(self, document_id: str) -> FileDocumentReference:
        filename = self._filenames.get(document_id.lower())
        if filename is None:
            for path in self._walk(self.directory):
                if self.normalize_filename(self.relative_name(path)) == document_id.lower():
                    filename = self.relative_name(path)
                    break
        if filename is None:
            raise DocumentNotFoundError(document_id, self.description())
        return self.to_document_reference(filename)

    def _should_scan(self, name: str) -> bool:
        if name in self.excludes:
            return False
        return self.include_hidden or not name.startswith(".")

    def _walk(self, directory: Path) -> Iterable[Path]:
        try:
            entries = sorted(os.scandir(directory), key=lambda entry: entry.name)
        except OSError as exc:
            LOGGER.warning("Could not read directory %s: %s", directory, exc)
            return
        for entry in entries:
            if entry.is_dir():
                if self._should_scan(entry.name):
                    yield from self._walk(Path(entry.path))
            elif entry.is_file() and entry.name.endswith(MARKDOWN_SUFFIX):
                # Only directories are hidden; dot-files themselves are listed.
                yield Path(entry.path)

    async def find_all(self) -> AsyncIterator[FileDocumentReference]:
        references = await asyncio.to_thread(
            lambda: [self.to_document_reference(path) for path in self._walk(self.directory)]
        )
        for reference in references:
            yield reference

    async def load_document(self, reference: DocumentReference) -> Document:
        if reference.kind != "file":
            raise DocumentNotFoundError(reference.id, self.description())
        path = self.directory / reference.filename
        try:
            raw = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError as exc:
            raise DocumentNotFoundError(reference.id, self.description()) from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise MarkdownParsingError(reference.filename, exc) from exc
        return to_document(reference, raw)


def make_repository(config: GardenConfig) -> MarkdownRepository:
    """
    Creates the repository described by a configuration.

    Raises:
        RepositoryConfigurationError: If the source is unknown or a file
            source has no path.
        DirectoryNotFoundError: If the configured directory does not exist.
    """
    if config.source == "file":
        if config.path is None:
            raise RepositoryConfigurationError("File repository requires a path to be specified")
        return FileRepository(
            config.path,
            excludes=config.excludes,
            include_hidden=config.include_hidden,
        )
    if config.source == "memory":
        return InMemoryRepository(config.content)
    raise RepositoryConfigurationError(f"Unknown repository source: {config.source}")
