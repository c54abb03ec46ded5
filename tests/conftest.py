from __future__ import annotations

from typing import Mapping, Set

import pytest

from markdown_graph.errors import MarkdownParsingError
from markdown_graph.models import Document, DocumentReference
from markdown_graph.repository import InMemoryRepository


class FlakyRepository(InMemoryRepository):
    """In-memory repository whose loads fail for selected ids."""

    def __init__(self, content: Mapping[str, str]) -> None:
        super().__init__(content)
        self.failing: Set[str] = set()
        self.loaded: list[str] = []

    async def load_document(self, reference: DocumentReference) -> Document:
        self.loaded.append(reference.id)
        if reference.id in self.failing:
            raise MarkdownParsingError(reference.id, OSError("disk error"))
        return await super().load_document(reference)


@pytest.fixture
def linked_content() -> dict[str, str]:
    return {
        "foo": "# Foo\n\nFoo content linking to [[bar]]",
        "bar": "# Bar\n\nBar content",
    }


@pytest.fixture
def repository(linked_content: dict[str, str]) -> FlakyRepository:
    return FlakyRepository(linked_content)
