"""
Helpers for assembling a directed graph from markdown documents.

Each section of a document becomes a node; explicit references (wiki links,
relative links) become links straight away, while implicit references found
by the lexical linker are only buffered. They are resolved in a separate
phase, once every node of the pass is known, so the outcome never depends on
the order in which documents were added.
"""

from __future__ import annotations  # Enables postponed evaluation of type annotations

import logging
from dataclasses import dataclass, field  # For creating data classes
from typing import Dict, Iterable, List, Mapping  # Type hinting utilities

import networkx as nx  # Library for creating and manipulating graphs

from .markdown_parser import (
    ROOT_DEPTH,
    SECTION_PLACEHOLDER_TITLE,
    lead_paragraph_text,
    parse_markdown_document,
)
from .models import Document, Graph, GraphStats, Link, Node, Section  # Data models
from .natural_language import natural_links
from .references import slugify

LOGGER = logging.getLogger(__name__)


def node_id_for(document_id: str, section: Section) -> str:
    """
    Node id of a section: the document id for the root section,
    `<document id>#<slug of the title>` for every subsection. A title with
    no sluggable characters uses the placeholder title's slug.
    """
    if section.depth == ROOT_DEPTH:
        return document_id
    slug = slugify(section.title) or slugify(SECTION_PLACEHOLDER_TITLE)
    return f"{document_id}#{slug}"


@dataclass
class DocumentContribution:
    """
    Everything one document adds to a graph.

    Attributes:
        document_id: Identifier of the contributing document.
        nodes: One node per section, root first.
        links: Explicit links, in document order.
        candidates: Implicit links that still have to be checked against the
                    final set of nodes.
    """
    document_id: str
    nodes: List[Node] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)
    candidates: List[Link] = field(default_factory=list)

    @property
    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]


def contribute(
    document: Document,
    *,
    implicit_links: bool = True,
    section_link_sources: bool = False,
    no_sections: bool = False,
    just_node_names: bool = False,
) -> DocumentContribution:
    """
    Splits a document into sections and derives its nodes and links.

    Args:
        document: The document to process.
        implicit_links: Whether lead paragraphs are run through the lexical linker.
        section_link_sources: Attribute links to the section that contains
                              them instead of to the document.
        no_sections: Only emit the root node; links of subsections are
                     attributed to the document.
        just_node_names: Label nodes with their id instead of the section title.

    Returns:
        A `DocumentContribution` with nodes, explicit links and implicit candidates.
    """
    sections = parse_markdown_document(document.content)
    metadata = dict(document.metadata) or None
    contribution = DocumentContribution(document_id=document.id)

    for section in sections:
        node_id = node_id_for(document.id, section)
        if no_sections and section.depth != ROOT_DEPTH:
            node_id = document.id
        else:
            contribution.nodes.append(
                Node(
                    id=node_id,
                    label=node_id if just_node_names else section.title,
                    metadata=dict(metadata) if metadata else None,
                )
            )
        source = node_id if section_link_sources else document.id
        contribution.links.extend(Link(source=source, target=target) for target in section.links)
        if implicit_links:
            contribution.candidates.extend(
                Link(source=source, target=target)
                for target in natural_links(lead_paragraph_text(section))
                if target != source
            )
    return contribution


def resolve_candidates(candidates: Iterable[Link], nodes: Mapping[str, Node]) -> List[Link]:
    """Keeps the implicit links whose target exists in `nodes`."""
    return [link for link in candidates if link.target in nodes]


class GraphBuilder:
    """
    Accumulates documents into a graph.

    ```python
    builder = GraphBuilder()
    builder.add_document(first).add_document(second)
    graph = builder.build()
    ```
    """

    def __init__(
        self,
        *,
        implicit_links: bool = True,
        section_link_sources: bool = False,
        no_sections: bool = False,
        just_node_names: bool = False,
    ) -> None:
        self.implicit_links = implicit_links
        self.section_link_sources = section_link_sources
        self.no_sections = no_sections
        self.just_node_names = just_node_names
        self._nodes: Dict[str, Node] = {}
        self._links: List[Link] = []
        self._candidates: List[Link] = []

    def add_document(self, document: Document) -> "GraphBuilder":
        """
        Adds the nodes and explicit links of a document, and buffers its
        implicit candidates until `build()`.
        """
        return self.add_contribution(self.contribute(document))

    def contribute(self, document: Document) -> DocumentContribution:
        """Derives a document's contribution using this builder's options."""
        return contribute(
            document,
            implicit_links=self.implicit_links,
            section_link_sources=self.section_link_sources,
            no_sections=self.no_sections,
            just_node_names=self.just_node_names,
        )

    def add_contribution(self, contribution: DocumentContribution) -> "GraphBuilder":
        for node in contribution.nodes:
            if node.id in self._nodes:
                LOGGER.debug("Node %s redefined by %s", node.id, contribution.document_id)
            self._nodes[node.id] = node
        self._links.extend(contribution.links)
        self._candidates.extend(contribution.candidates)
        return self

    def add_node(self, node: Node) -> "GraphBuilder":
        self._nodes[node.id] = node
        return self

    def build(self) -> Graph:
        """
        Returns an independent graph containing every node and explicit link
        added so far, followed by the implicit links whose target is a node of
        that graph.
        """
        nodes = dict(self._nodes)
        links = list(self._links)
        links.extend(resolve_candidates(self._candidates, nodes))
        return Graph(nodes=nodes, links=links)

    def reset(self) -> "GraphBuilder":
        """Clears nodes, links and buffered candidates."""
        self._nodes = {}
        self._links = []
        self._candidates = []
        return self

    def get_stats(self) -> GraphStats:
        """Counts of nodes and explicit links added so far."""
        return GraphStats(node_count=len(self._nodes), link_count=len(self._links))


def assemble(documents: Iterable[Document], **options: bool) -> Graph:
    """
    Builds a graph from a collection of documents in one pass.

    Args:
        documents: Documents to include, in insertion order.
        **options: Keyword options of `GraphBuilder`.

    Returns:
        A new `Graph`.
    """
    builder = GraphBuilder(**options)
    for document in documents:
        builder.add_document(document)
    return builder.build()


@dataclass
class GraphSummary:
    node_count: int
    link_count: int
    dangling_link_count: int
    orphan_count: int
    component_count: int


def to_networkx(graph: Graph) -> nx.MultiDiGraph:
    """
    Converts a graph into a `networkx.MultiDiGraph`.

    Parallel links are kept as parallel edges. Targets without a node are
    added as nodes flagged with `dangling=True`.
    """
    digraph = nx.MultiDiGraph()
    for node_id, node in graph.nodes.items():
        digraph.add_node(node_id, label=node.label, metadata=node.metadata or {}, dangling=False)
    for link in graph.links:
        for endpoint in (link.source, link.target):
            if endpoint not in digraph:
                digraph.add_node(endpoint, label=endpoint, metadata={}, dangling=True)
        digraph.add_edge(link.source, link.target)
    return digraph


def summarize(graph: Graph) -> GraphSummary:
    """Connectivity figures of a graph, as reported by the verbose CLI."""
    digraph = to_networkx(graph)
    dangling = sum(1 for link in graph.links if link.target not in graph.nodes)
    orphans = sum(1 for node_id in graph.nodes if digraph.degree(node_id) == 0)
    components = nx.number_weakly_connected_components(digraph) if len(digraph) else 0
    return GraphSummary(
        node_count=len(graph.nodes),
        link_count=len(graph.links),
        dangling_link_count=dangling,
        orphan_count=orphans,
        component_count=components,
    )
