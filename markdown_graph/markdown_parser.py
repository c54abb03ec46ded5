"""
This module provides utilities for parsing markdown documents, extracting their
front matter (metadata), and splitting their content into a tree of sections
keyed by heading depth. Each section later becomes one node of the graph.
"""

from __future__ import annotations  # Enables postponed evaluation of type annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple  # Type hinting utilities

import frontmatter  # Library for parsing YAML front matter from markdown files
import yaml  # Front matter errors surface as YAML errors
from markdown_it import MarkdownIt  # Core markdown parser library
from markdown_it.rules_inline import StateInline
from markdown_it.tree import SyntaxTreeNode  # Nested view over the flat token stream
from mdit_py_plugins.front_matter import front_matter_plugin  # Plugin for MarkdownIt to handle front matter

from .models import Section
from .references import extract_references

LOGGER = logging.getLogger(__name__)

ROOT_DEPTH = 1
MAX_HEADING_DEPTH = 6

# Title used for a subsection without any usable text.
SECTION_PLACEHOLDER_TITLE = "no title"
# Title used for the root section when the document has no heading and no paragraph.
ROOT_PLACEHOLDER_TITLE = "untitled"

FRONT_MATTER_ERROR_TITLE = "Front matter error"

FRONT_MATTER_HANDLER = frontmatter.YAMLHandler()


def _wikilink_rule(state: StateInline, silent: bool) -> bool:
    """
    Inline rule recognising `[[target]]` and `[[target|label]]`.

    Emits a single `wikilink` token whose `meta` holds the raw target and the
    display label; `content` carries the label so text extraction sees it.
    """
    start = state.pos
    if not state.src.startswith("[[", start):
        return False
    end = state.src.find("]]", start + 2)
    if end < 0 or end + 2 > state.posMax:
        return False
    raw = state.src[start + 2:end]
    if not raw.strip() or "\n" in raw or "[" in raw:
        return False

    if not silent:
        target, _, label = raw.partition("|")
        token = state.push("wikilink", "", 0)
        token.content = (label or target).strip()
        token.meta = {"target": target.strip(), "label": (label or target).strip()}
        token.markup = "[["
    state.pos = end + 2
    return True


def _build_parser() -> MarkdownIt:
    """
    Configures and returns a MarkdownIt parser instance.

    The parser is set up with 'commonmark' rules, with breaks and HTML disabled.
    Tables are enabled, front matter blocks are recognised (so a block left in
    place after a failed front matter parse never turns into a heading), and
    wiki-style references are tokenized before regular links.

    Returns:
        A configured `MarkdownIt` parser instance.
    """
    md = MarkdownIt("commonmark", {"breaks": False, "html": False})
    md.enable("table")
    md.use(front_matter_plugin)
    md.inline.ruler.before("link", "wikilink", _wikilink_rule)
    return md


# Global MarkdownIt parser instance to avoid re-initialization
MD = _build_parser()


def _flatten_metadata(values: Dict[Any, Any], prefix: str = "") -> Dict[str, str]:
    flat: Dict[str, str] = {}
    for key, value in values.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten_metadata(value, prefix=f"{name}."))
        elif isinstance(value, (list, tuple, set)):
            flat[name] = ", ".join(str(item) for item in value)
        elif value is None:
            flat[name] = ""
        else:
            flat[name] = str(value)
    return flat


def front_matter_error_marker(message: str) -> str:
    """Markdown appended to a document whose front matter could not be parsed."""
    first_line = message.strip().splitlines()[0] if message.strip() else "unknown error"
    return f"\n\n> **{FRONT_MATTER_ERROR_TITLE}**: {first_line}\n"


def read_front_matter(raw_text: str) -> Tuple[Dict[str, str], str]:
    """
    Splits a raw markdown string into flattened front matter and body.

    Malformed front matter does not abort processing: metadata falls back to
    an empty mapping and a visible error marker is appended to the content.
    A block that parses to something other than a mapping is malformed too.

    Args:
        raw_text: The complete markdown content, possibly starting with a
                  YAML front matter block.

    Returns:
        A tuple of (metadata, content).
    """
    text = raw_text.strip()
    if not FRONT_MATTER_HANDLER.detect(text):
        return {}, raw_text
    try:
        block, content = FRONT_MATTER_HANDLER.split(text)
    except ValueError:
        # An opening delimiter without a closing one is a thematic break.
        return {}, raw_text
    try:
        values = FRONT_MATTER_HANDLER.load(block)
    except (yaml.YAMLError, TypeError, ValueError) as exc:
        LOGGER.debug("Front matter could not be parsed: %s", exc)
        return {}, raw_text + front_matter_error_marker(str(exc))
    if values is None:
        values = {}
    if not isinstance(values, dict):
        message = f"expected a mapping of keys to values, got {type(values).__name__}"
        LOGGER.debug("Front matter could not be parsed: %s", message)
        return {}, raw_text + front_matter_error_marker(message)
    return _flatten_metadata(values), content.strip()


def parse_blocks(content: str) -> List[SyntaxTreeNode]:
    """
    Parses markdown content into the ordered list of block-level nodes.
    """
    tokens = MD.parse(content)
    return list(SyntaxTreeNode(tokens).children)


def heading_depth(node: SyntaxTreeNode) -> Optional[int]:
    """Returns the depth of a heading node (1 for `h1`), or None for other blocks."""
    if node.type != "heading":
        return None
    tag = node.tag or ""
    if len(tag) == 2 and tag[0] == "h" and tag[1].isdigit():
        return int(tag[1])
    return None


def is_autolink(node: SyntaxTreeNode) -> bool:
    """
    True for bare-URL links such as `<https://example.com>`, whose visible
    text is the URL itself.
    """
    if node.type != "link":
        return False
    if node.markup in ("autolink", "linkify"):
        return True
    href = (node.attrs or {}).get("href")
    return href is not None and href == _inline_text(node.children)


def _inline_text(nodes: Iterable[SyntaxTreeNode], skip_autolinks: bool = False) -> str:
    parts: List[str] = []
    for node in nodes:
        if skip_autolinks and is_autolink(node):
            continue
        if node.type in ("text", "code_inline", "wikilink"):
            parts.append(node.content)
        elif node.type in ("softbreak", "hardbreak"):
            parts.append(" ")
        elif node.children:
            parts.append(_inline_text(node.children, skip_autolinks))
    return "".join(parts)


def block_text(node: SyntaxTreeNode) -> str:
    """
    Plain text of a heading or paragraph, leaving out autolinks.
    """
    inline_nodes = [child for child in node.children if child.type == "inline"]
    text = "".join(_inline_text(child.children, skip_autolinks=True) for child in inline_nodes)
    return " ".join(text.split())


def _first_block(section: Section, block_type: str) -> Optional[SyntaxTreeNode]:
    return next((node for node in section.body if node.type == block_type), None)


def section_title(section: Section) -> str:
    """
    Title of a section: its heading text, else the text of its first
    paragraph, else a placeholder. An empty heading counts as missing.
    """
    heading = _first_block(section, "heading")
    if heading is not None and block_text(heading):
        return block_text(heading)
    paragraph = _first_block(section, "paragraph")
    if paragraph is not None:
        return block_text(paragraph)
    return ROOT_PLACEHOLDER_TITLE if section.depth == ROOT_DEPTH else SECTION_PLACEHOLDER_TITLE


def lead_paragraph_text(section: Section) -> str:
    """
    Raw inline markdown of the first paragraph of a section, or an empty
    string. This is the text handed to the lexical linker.
    """
    paragraph = _first_block(section, "paragraph")
    if paragraph is None:
        return ""
    return " ".join(child.content for child in paragraph.children if child.type == "inline")


def split_sections(blocks: Iterable[SyntaxTreeNode]) -> List[Section]:
    """
    Rebuilds the section tree of a document from its flat block stream.

    The first section is always the depth-1 root. Every heading deeper than 1
    opens a new section once a top-level heading has been seen; deeper
    headings before that are dropped. A further top-level heading sends the
    following content back into the root section.

    Nesting uses a stack indexed by depth. A new section is attached to the
    nearest open section of smaller depth, so a skipped level (an `h4` right
    after an `h2`) nests under the `h2` without a synthesized `h3`. Opening a
    section closes every deeper entry of the stack.

    Args:
        blocks: Block-level nodes of one document, in document order.

    Returns:
        All sections in the order they were opened, root first. Titles are
        filled in; links are left empty.
    """
    root = Section(depth=ROOT_DEPTH)
    sections: List[Section] = [root]
    stack: List[Optional[Section]] = [None] * (MAX_HEADING_DEPTH + 1)
    stack[ROOT_DEPTH] = root
    current_depth = ROOT_DEPTH
    found_root_heading = False

    for node in blocks:
        discard = False
        depth = heading_depth(node)
        if depth == ROOT_DEPTH:
            current_depth = ROOT_DEPTH
            found_root_heading = True
        elif depth is not None:
            if found_root_heading:
                current_depth = depth
                section = Section(depth=depth)
                parent = next(
                    (stack[level] for level in range(depth - 1, 0, -1) if stack[level] is not None),
                    None,
                )
                if parent is not None:
                    parent.children.append(section)
                for level in range(depth, MAX_HEADING_DEPTH + 1):
                    stack[level] = None
                stack[depth] = section
                sections.append(section)
            else:
                discard = True

        if not discard:
            target = root if current_depth == ROOT_DEPTH else sections[-1]
            target.body.append(node)

    for section in sections:
        section.title = section_title(section)
    return sections


def parse_markdown_document(content: str) -> List[Section]:
    """
    Parses markdown content into sections with titles and explicit links.

    Args:
        content: Markdown body of a document (front matter already removed).

    Returns:
        The list of `Section` objects, root first.
    """
    sections = split_sections(parse_blocks(content))
    for section in sections:
        section.links = extract_references(section)
    return sections
