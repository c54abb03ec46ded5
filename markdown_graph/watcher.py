"""
Watch mode: keeps the graph file current while documents change on disk.

Changes are detected by polling the repository and comparing content hashes
of successive enumerations. Detected changes are applied to a `GraphIndex`
one at a time, and the graph file is rewritten after every poll that changed
something.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from .config import GardenConfig
from .index import GraphIndex
from .models import DocumentReference, GraphStats
from .repository import MarkdownRepository, make_repository
from .serialize import write_graph

LOGGER = logging.getLogger(__name__)


@dataclass
class WatchChanges:
    added: List[str] = field(default_factory=list)
    changed: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.added or self.changed or self.removed)


class GraphWatcher:
    """
    Polls a repository and mirrors its changes into a graph file.

    ```python
    watcher = GraphWatcher(GardenConfig(path=Path("notes")))
    await watcher.run()
    ```
    """

    def __init__(
        self, config: GardenConfig, repository: Optional[MarkdownRepository] = None
    ) -> None:
        self.config = config
        self.repository = repository or make_repository(config)
        self.output_path: Path = config.resolved_output_path()
        self.index = GraphIndex(
            self.repository, batch_size=config.batch_size, **config.builder_options()
        )
        self._snapshot: Dict[str, str] = {}
        self._stopped = asyncio.Event()
        self.last_update: Optional[datetime] = None

    async def _enumerate(self) -> Dict[str, DocumentReference]:
        return {reference.id: reference async for reference in self.repository.find_all()}

    async def start(self) -> GraphStats:
        """Builds the initial graph and writes it."""
        LOGGER.info("Initializing graph from %s", self.repository.description())
        await self.index.initialize()
        references = await self._enumerate()
        self._snapshot = {document_id: ref.hash for document_id, ref in references.items()}
        self._write()
        stats = self.index.get_stats()
        LOGGER.info(
            "Initial graph created with %d nodes and %d links",
            stats.node_count,
            stats.link_count,
        )
        return stats

    async def poll_once(self) -> WatchChanges:
        """
        Compares the repository with the previous poll and applies the
        differences to the index.

        Returns:
            The ids that were added, changed and removed.
        """
        references = await self._enumerate()
        current = {document_id: ref.hash for document_id, ref in references.items()}
        changes = WatchChanges(
            added=[doc_id for doc_id in current if doc_id not in self._snapshot],
            changed=[
                doc_id
                for doc_id, digest in current.items()
                if doc_id in self._snapshot and self._snapshot[doc_id] != digest
            ],
            removed=[doc_id for doc_id in self._snapshot if doc_id not in current],
        )
        snapshot = dict(current)
        for doc_id in changes.added + changes.changed:
            if await self.index.update(references[doc_id]) is None:
                # Keep the previous hash so the document is retried next poll.
                if doc_id in self._snapshot:
                    snapshot[doc_id] = self._snapshot[doc_id]
                else:
                    del snapshot[doc_id]
                continue
            LOGGER.info("Graph updated: %s %s", doc_id, "added" if doc_id in changes.added else "changed")
        for doc_id in changes.removed:
            self.index.remove(doc_id)
            LOGGER.info("Graph updated: %s removed", doc_id)
        self._snapshot = snapshot
        if changes:
            self._write()
        return changes

    def _write(self) -> None:
        write_graph(self.index.get_graph(), self.output_path)
        self.last_update = datetime.now()
        LOGGER.debug("Graph written to %s", self.output_path)

    async def run(self, max_polls: Optional[int] = None) -> None:
        """
        Starts the watcher and polls until `stop()` is called or `max_polls`
        polls have been made.
        """
        await self.start()
        LOGGER.info("Watching for changes every %.2fs", self.config.poll_interval)
        polls = 0
        while not self._stopped.is_set():
            if max_polls is not None and polls >= max_polls:
                break
            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self.config.poll_interval)
                break
            except asyncio.TimeoutError:
                pass
            await self.poll_once()
            polls += 1
        LOGGER.info("File watcher stopped")

    def stop(self) -> None:
        self._stopped.set()

    def get_stats(self) -> GraphStats:
        return self.index.get_stats()
