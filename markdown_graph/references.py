"""Slugging and explicit reference extraction."""

from __future__ import annotations

import re
from typing import Iterator, List
from urllib.parse import unquote

from markdown_it.tree import SyntaxTreeNode

from .models import Section

RELATIVE_PREFIXES = ("./", "../")

_FILE_NAME_PATTERN = re.compile(r"([^/]*?)(?:\.md|/)*$")


def slugify(value: str) -> str:
    """Convert arbitrary text into a lowercase, hyphenated, URL-safe identifier."""
    allowed = []
    for char in value.lower():
        if char.isalnum():
            allowed.append(char)
        elif char in {" ", "-", "_"} or char.isspace():
            allowed.append("-")
    slug = "".join(allowed).strip("-")
    return "-".join(filter(None, slug.split("-")))


def file_name_from_url(url: str) -> str:
    """Final path segment of a relative URL, without directories or a `.md` suffix."""
    path = url.split("#", 1)[0].split("?", 1)[0]
    match = _FILE_NAME_PATTERN.search(unquote(path))
    return match.group(1) if match else path


def walk(nodes: List[SyntaxTreeNode]) -> Iterator[SyntaxTreeNode]:
    """Depth-first, pre-order traversal: yields nodes in document order."""
    for node in nodes:
        yield node
        if node.children:
            yield from walk(node.children)


def is_relative_link(node: SyntaxTreeNode) -> bool:
    if node.type != "link":
        return False
    href = (node.attrs or {}).get("href", "")
    return isinstance(href, str) and href.startswith(RELATIVE_PREFIXES)


def extract_references(section: Section) -> List[str]:
    """
    Returns the explicit reference targets of a section, in document order.

    Wiki references (`[[Target]]`) yield the slug of their target; relative
    links (`[text](./target.md)`) yield the slug of the linked file name.
    Duplicates are kept.
    """
    targets: List[str] = []
    for node in walk(section.body):
        if node.type == "wikilink":
            targets.append(slugify((node.meta or {}).get("target", node.content)))
        elif is_relative_link(node):
            targets.append(slugify(file_name_from_url(node.attrs["href"])))
    return [target for target in targets if target]
