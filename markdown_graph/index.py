"""
Incremental maintenance of a graph for a long-lived, mutable corpus.

`GraphIndex` owns one working `Graph` and remembers, per document, which node
ids that document produced. Updating or removing a document retracts exactly
those nodes, together with every link that starts or ends at one of them, and
leaves the rest of the graph untouched.

Mutating calls are not synchronized against each other; callers apply
changes one at a time.
"""

from __future__ import annotations  # Enables postponed evaluation of type annotations

import logging
from typing import Dict, List, Optional, Union

from .config import DEFAULT_BATCH_SIZE
from .errors import DocumentNotFoundError, MarkdownGraphError
from .graph import GraphBuilder, contribute, resolve_candidates
from .ingestion import load_documents
from .models import DocumentReference, Graph, GraphStats, OwnershipRecord
from .repository import MarkdownRepository

LOGGER = logging.getLogger(__name__)

ReferenceOrId = Union[DocumentReference, str]


def _document_id(ref_or_id: ReferenceOrId) -> str:
    # Repositories hand out lowercase ids.
    if isinstance(ref_or_id, str):
        return ref_or_id.lower()
    return ref_or_id.id


class GraphIndex:
    """
    Keeps a graph in sync with a repository, one document at a time.

    ```python
    index = GraphIndex(repository)
    await index.initialize()
    await index.update("notes")
    index.remove("drafts")
    graph = index.get_graph()
    ```
    """

    def __init__(
        self,
        repository: MarkdownRepository,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        implicit_links: bool = True,
        section_link_sources: bool = False,
        no_sections: bool = False,
        just_node_names: bool = False,
    ) -> None:
        self.repository = repository
        self.batch_size = batch_size
        self._options = {
            "implicit_links": implicit_links,
            "section_link_sources": section_link_sources,
            "no_sections": no_sections,
            "just_node_names": just_node_names,
        }
        self._graph = Graph()
        self._owners: Dict[str, OwnershipRecord] = {}

    async def initialize(self) -> Graph:
        """
        Processes every document of the repository once and records which
        nodes each one owns. Documents that fail to load are logged and
        skipped.

        Returns:
            A copy of the resulting graph.
        """
        builder = GraphBuilder(**self._options)
        owners: Dict[str, OwnershipRecord] = {}
        async for document in load_documents(self.repository, batch_size=self.batch_size):
            contribution = builder.contribute(document)
            builder.add_contribution(contribution)
            owners[document.id] = OwnershipRecord(
                document_id=document.id, node_ids=contribution.node_ids
            )
        self._graph = builder.build()
        self._owners = owners
        LOGGER.info(
            "Indexed %d documents: %d nodes, %d links",
            len(owners),
            len(self._graph.nodes),
            len(self._graph.links),
        )
        return self.get_graph()

    def _resolve(self, ref_or_id: ReferenceOrId) -> DocumentReference:
        if isinstance(ref_or_id, str):
            return self.repository.find(ref_or_id)
        return ref_or_id

    async def update(self, ref_or_id: ReferenceOrId) -> Optional[OwnershipRecord]:
        """
        Replaces a document's contribution with one derived from its current
        content.

        A document that no longer exists is retracted. Any other load failure
        is logged and the previous contribution is kept.

        Args:
            ref_or_id: A reference handed out by the repository, or a document id.

        Returns:
            The new ownership record, or None if the document could not be loaded.
        """
        document_id = _document_id(ref_or_id)
        try:
            reference = self._resolve(ref_or_id)
            document = await self.repository.load_document(reference)
        except DocumentNotFoundError as exc:
            LOGGER.warning("%s; retracting its nodes", exc)
            self.remove(document_id)
            return None
        except MarkdownGraphError as exc:
            LOGGER.warning("Failed to update document %s: %s", document_id, exc)
            return None

        contribution = contribute(document, **self._options)
        self._retract(document.id)
        for node in contribution.nodes:
            self._graph.nodes[node.id] = node
        self._graph.links.extend(contribution.links)
        # Candidates resolve against the live graph, this document's nodes included.
        self._graph.links.extend(resolve_candidates(contribution.candidates, self._graph.nodes))

        record = OwnershipRecord(document_id=document.id, node_ids=contribution.node_ids)
        self._owners[document.id] = record
        LOGGER.debug("Updated %s: %d nodes", document.id, len(record.node_ids))
        return record

    def remove(self, ref_or_id: ReferenceOrId) -> bool:
        """
        Retracts a document's contribution without reprocessing it.

        Returns:
            True if the document was tracked.
        """
        document_id = _document_id(ref_or_id)
        removed = self._retract(document_id)
        if removed:
            LOGGER.debug("Removed %s", document_id)
        return removed

    def _retract(self, document_id: str) -> bool:
        # Also drops links other documents point at these nodes; they come
        # back only when their own document is updated.
        record = self._owners.pop(document_id, None)
        if record is None:
            return False
        owned = set(record.node_ids)
        for node_id in owned:
            self._graph.nodes.pop(node_id, None)
        self._graph.links = [
            link
            for link in self._graph.links
            if link.source not in owned and link.target not in owned
        ]
        return True

    def get_graph(self) -> Graph:
        return self._graph.copy_graph()

    def get_stats(self) -> GraphStats:
        return GraphStats(node_count=len(self._graph.nodes), link_count=len(self._graph.links))

    def owned_node_ids(self, document_id: str) -> List[str]:
        record = self._owners.get(_document_id(document_id))
        return list(record.node_ids) if record else []

    def document_ids(self) -> List[str]:
        return list(self._owners)
