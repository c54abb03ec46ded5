"""
`markdown_graph` turns a corpus of markdown documents into a graph: one node
per section of a document, one link per reference from a section to another
node.

The package exposes one-shot assembly (`assemble`, `generate_graph`), the
incremental `GraphIndex` used by watch mode, and the repositories documents
are read from.
"""

from .config import GardenConfig
from .graph import GraphBuilder, assemble
from .index import GraphIndex
from .ingestion import generate_graph
from .models import Document, Graph, GraphStats, Link, Node
from .natural_language import natural_aliases, natural_links, natural_process
from .repository import FileRepository, InMemoryRepository, make_repository
from .serialize import write_graph

# Public API of the `markdown_graph` package.
__all__ = [
    "Document",            # Markdown document with front matter split off
    "FileRepository",      # Documents read from a directory of .md files
    "GardenConfig",        # Source, output and linking options
    "Graph",               # Snapshot of nodes and links
    "GraphBuilder",        # Accumulates documents into a graph
    "GraphIndex",          # Incrementally maintained graph
    "GraphStats",          # Node and link counts
    "InMemoryRepository",  # Documents held in a dictionary
    "Link",
    "Node",
    "assemble",            # One-shot graph from a list of documents
    "generate_graph",      # One-shot graph from a repository
    "make_repository",
    "natural_aliases",
    "natural_links",       # Implicit link candidates from plain text
    "natural_process",
    "write_graph",         # Validated JSON output
]
