"""
Bulk processing of a whole corpus into a graph.

Document contents are fetched concurrently in fixed-size batches; the graph
itself is only ever touched from the single control path that consumes the
batches, one document at a time, in batch order.
"""

from __future__ import annotations  # Enables postponed evaluation of type annotations

import asyncio
import logging
from typing import AsyncIterator, List

from .config import DEFAULT_BATCH_SIZE
from .graph import GraphBuilder
from .models import Document, DocumentReference, Graph, Node
from .repository import MarkdownRepository

LOGGER = logging.getLogger(__name__)


async def _load_batch(
    repository: MarkdownRepository, batch: List[DocumentReference]
) -> List[Document]:
    results = await asyncio.gather(
        *(repository.load_document(reference) for reference in batch),
        return_exceptions=True,
    )
    documents: List[Document] = []
    for reference, result in zip(batch, results):
        if isinstance(result, Exception):
            LOGGER.warning("Failed to load document %s: %s", reference.id, result)
            continue
        if isinstance(result, BaseException):
            raise result
        documents.append(result)
    return documents


async def load_documents(
    repository: MarkdownRepository, *, batch_size: int = DEFAULT_BATCH_SIZE
) -> AsyncIterator[Document]:
    """
    Yields every loadable document of a repository.

    References are collected into batches of `batch_size`; each batch is
    loaded concurrently and awaited as a whole before its documents are
    yielded. Documents that fail to load are logged and skipped.

    Args:
        repository: The repository to enumerate.
        batch_size: Number of documents fetched concurrently.

    Yields:
        `Document` objects in batch order.
    """
    batch: List[DocumentReference] = []
    async for reference in repository.find_all():
        batch.append(reference)
        if len(batch) >= batch_size:
            for document in await _load_batch(repository, batch):
                yield document
            batch = []
    if batch:
        for document in await _load_batch(repository, batch):
            yield document


async def generate_graph(
    repository: MarkdownRepository,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    implicit_links: bool = True,
    section_link_sources: bool = False,
    just_node_names: bool = False,
    no_sections: bool = False,
) -> Graph:
    """
    Builds the graph of every document in a repository.

    When both `just_node_names` and `no_sections` are set, documents are not
    loaded at all: each reference becomes a bare node labelled with its id.

    Returns:
        A new `Graph`.
    """
    builder = GraphBuilder(
        implicit_links=implicit_links,
        section_link_sources=section_link_sources,
        no_sections=no_sections,
        just_node_names=just_node_names,
    )

    if just_node_names and no_sections:
        async for reference in repository.find_all():
            builder.add_node(Node(id=reference.id, label=reference.id))
        return builder.build()

    count = 0
    async for document in load_documents(repository, batch_size=batch_size):
        builder.add_document(document)
        count += 1
    stats = builder.get_stats()
    LOGGER.info(
        "Processed %d documents into %d nodes and %d links",
        count,
        stats.node_count,
        stats.link_count,
    )
    return builder.build()
