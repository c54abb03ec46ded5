"""
This module defines the Pydantic models and dataclasses used to represent
markdown documents and the graph derived from them. Nodes and links are frozen
so that graph snapshots handed to callers can share them safely; only the
containers (`Graph.nodes`, `Graph.links`) are copied between snapshots.
"""

from __future__ import annotations  # Enables postponed evaluation of type annotations

from dataclasses import dataclass, field  # For simple data-holding classes
from typing import Annotated, Any, Dict, List, Literal, Optional, Union  # Type hinting utilities

from pydantic import BaseModel, ConfigDict, Field  # Base class for data models and field customization


class MemoryDocumentReference(BaseModel):
    """
    Points at a document held by an in-memory repository.
    """
    model_config = ConfigDict(frozen=True)

    kind: Literal["memory"] = "memory"
    id: str = Field(description="Case-normalized document identifier.")
    hash: str = Field(description="Content hash used for change detection.")


class FileDocumentReference(BaseModel):
    """
    Points at a markdown file below the root directory of a file repository.
    """
    model_config = ConfigDict(frozen=True)

    kind: Literal["file"] = "file"
    id: str = Field(description="Case-normalized document identifier.")
    hash: str = Field(description="Content hash used for change detection.")
    filename: str = Field(description="Path of the file relative to the repository root.")


# Loaders dispatch on `kind`, so every reference variant carries exactly the
# fields its own loader needs.
DocumentReference = Annotated[
    Union[MemoryDocumentReference, FileDocumentReference],
    Field(discriminator="kind"),
]


class Document(BaseModel):
    """
    A markdown document loaded from a repository, with its front matter
    already split off into `metadata`.
    """
    id: str = Field(description="Stable, case-normalized identifier assigned by the repository.")
    hash: str = Field(description="Hash of the raw document content.")
    content: str = Field(description="Markdown body without the front matter block.")
    metadata: Dict[str, str] = Field(
        default_factory=dict,
        description="Flattened front matter key/value pairs.",
    )


class Node(BaseModel):
    """
    A single graph node: one per section of a document.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Document id for root sections, `<document>#<slug>` for subsections.")
    label: str = Field(description="Title of the section.")
    metadata: Optional[Dict[str, str]] = Field(
        default=None,
        description="Metadata of the owning document; identical for every node of that document.",
    )


class Link(BaseModel):
    """
    A directed reference from one node to another. The target may be dangling.
    """
    model_config = ConfigDict(frozen=True)

    source: str
    target: str


class Graph(BaseModel):
    """
    A graph snapshot: nodes keyed by id plus an ordered, non-deduplicated list of links.
    """
    nodes: Dict[str, Node] = Field(default_factory=dict)
    links: List[Link] = Field(default_factory=list)

    def copy_graph(self) -> "Graph":
        """
        Returns an independent snapshot. Nodes and links are immutable, so
        copying the containers is enough to isolate the snapshot from later
        mutation of this graph.
        """
        return Graph(nodes=dict(self.nodes), links=list(self.links))


class GraphStats(BaseModel):
    """
    Node and link counts, serialized as `{nodeCount, linkCount}`.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    node_count: int = Field(alias="nodeCount")
    link_count: int = Field(alias="linkCount")

    def as_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


@dataclass
class Section:
    """
    A titled, depth-tagged part of a document.

    Attributes:
        depth: Heading depth that opened the section; 1 for the root section.
        title: Heading text, lead paragraph text, or a placeholder.
        body: Block-level syntax tree nodes belonging to the section, in order.
        children: Subsections nested directly below this section.
        links: Explicit reference targets found in the body, in document order.
    """
    depth: int
    title: str = ""
    body: List[Any] = field(default_factory=list)
    children: List["Section"] = field(default_factory=list)
    links: List[str] = field(default_factory=list)


@dataclass
class OwnershipRecord:
    """
    Remembers which node ids a document contributed to a live graph, so the
    contribution can be retracted when the document changes or disappears.
    """
    document_id: str
    node_ids: List[str] = field(default_factory=list)
