"""Graph assembly from documents."""
from __future__ import annotations

from markdown_graph.graph import GraphBuilder, assemble, contribute, summarize, to_networkx
from markdown_graph.markdown_parser import parse_markdown_document
from markdown_graph.models import Document, Graph, Link


def _doc(doc_id: str, content: str, **metadata: str) -> Document:
    return Document(id=doc_id, hash=f"hash-{doc_id}", content=content, metadata=metadata)


FOO = _doc("foo", "# Foo\n\nFoo content linking to [[bar]]")
BAR = _doc("bar", "# Bar\n\nBar content")


def test_linked_documents() -> None:
    graph = assemble([FOO, BAR])

    assert {node_id: node.label for node_id, node in graph.nodes.items()} == {
        "foo": "Foo",
        "bar": "Bar",
    }
    assert graph.links == [Link(source="foo", target="bar")]


def test_subsection_node_ids() -> None:
    graph = assemble([_doc("foo", "# Foo\n\nfoo content\n\n## Foo section\n\nfoo section content")])

    assert list(graph.nodes) == ["foo", "foo#foo-section"]
    assert graph.nodes["foo#foo-section"].label == "Foo section"
    assert graph.links == []


def test_one_node_per_heading_level() -> None:
    graph = assemble([_doc("doc", "# Doc\n\n## Level 2\n\n### Level 3\n\n#### Level 4\n")])

    assert list(graph.nodes) == ["doc", "doc#level-2", "doc#level-3", "doc#level-4"]


def test_empty_subsection_heading_uses_placeholder() -> None:
    graph = assemble([_doc("doc", "# Doc\n\n## \n")])

    assert list(graph.nodes) == ["doc", "doc#no-title"]
    assert graph.nodes["doc#no-title"].label == "no title"


def test_symbol_only_subsection_heading_gets_placeholder_id() -> None:
    graph = assemble([_doc("doc", "# Doc\n\n## ⇒\n")])

    assert list(graph.nodes) == ["doc", "doc#no-title"]
    assert graph.nodes["doc#no-title"].label == "⇒"


def test_node_count_matches_section_count() -> None:
    content = "# Doc\n\n## A\n\ntext\n\n#### B\n\n## C\n"

    contribution = contribute(_doc("doc", content))

    assert len(contribution.nodes) == len(parse_markdown_document(content))
    assert contribution.nodes[0].id == "doc"


def test_empty_corpus() -> None:
    assert assemble([]) == Graph(nodes={}, links=[])


def test_assemble_is_idempotent() -> None:
    first = assemble([FOO, BAR])
    second = assemble([FOO, BAR])

    assert first == second
    assert first is not second


def test_metadata_is_attached_to_every_node() -> None:
    doc = _doc("foo", "# Foo\n\n## Part\n", status="draft")

    graph = assemble([doc])

    assert graph.nodes["foo"].metadata == {"status": "draft"}
    assert graph.nodes["foo#part"].metadata == {"status": "draft"}
    assert assemble([BAR]).nodes["bar"].metadata is None


def test_dangling_explicit_links_are_kept() -> None:
    graph = assemble([_doc("foo", "# Foo\n\n[[missing]] and [gone](./gone.md)")])

    assert graph.links == [
        Link(source="foo", target="missing"),
        Link(source="foo", target="gone"),
    ]


def test_explicit_links_from_subsections_use_document_id() -> None:
    graph = assemble([_doc("foo", "# Foo\n\n## Part\n\nsee [[bar]]")])

    assert graph.links == [Link(source="foo", target="bar")]


def test_section_link_sources_attribute_links_to_sections() -> None:
    graph = assemble([_doc("foo", "# Foo\n\n## Part\n\nsee [[bar]]")], section_link_sources=True)

    assert graph.links == [Link(source="foo#part", target="bar")]


def test_no_sections_keeps_only_root_nodes() -> None:
    graph = assemble([_doc("foo", "# Foo\n\n## Part\n\nsee [[bar]]")], no_sections=True)

    assert list(graph.nodes) == ["foo"]
    assert graph.links == [Link(source="foo", target="bar")]


def test_just_node_names_labels_nodes_with_ids() -> None:
    graph = assemble([_doc("foo", "# Foo\n\n## Part\n")], just_node_names=True)

    assert [node.label for node in graph.nodes.values()] == ["foo", "foo#part"]


def test_parallel_links_are_not_deduplicated() -> None:
    graph = assemble([_doc("foo", "# Foo\n\n[[bar]] [[bar]]")])

    assert graph.links == [Link(source="foo", target="bar")] * 2


class TestImplicitLinks:
    ALPHA = _doc("alpha", "# Alpha\n\nThis is an awesome library")
    LIBRARY = _doc("library", "# Library\n\nShelves")

    def test_candidate_resolves_to_existing_node(self) -> None:
        graph = assemble([self.ALPHA, self.LIBRARY])

        assert graph.links == [Link(source="alpha", target="library")]

    def test_resolution_does_not_depend_on_order(self) -> None:
        graph = assemble([self.LIBRARY, self.ALPHA])

        assert graph.links == [Link(source="alpha", target="library")]

    def test_candidates_without_a_node_are_dropped(self) -> None:
        assert assemble([self.ALPHA]).links == []

    def test_implicit_links_can_be_disabled(self) -> None:
        assert assemble([self.ALPHA, self.LIBRARY], implicit_links=False).links == []

    def test_document_never_links_to_itself(self) -> None:
        graph = assemble([_doc("library", "# Library\n\nA library of books")])

        assert graph.links == []

    def test_implicit_links_follow_explicit_links(self) -> None:
        alpha = _doc("alpha", "# Alpha\n\nThis is an awesome library\n\n[[zeta]]")

        graph = assemble([alpha, self.LIBRARY])

        assert graph.links == [
            Link(source="alpha", target="zeta"),
            Link(source="alpha", target="library"),
        ]


class TestGraphBuilder:
    def test_build_returns_independent_copies(self) -> None:
        builder = GraphBuilder().add_document(FOO)

        first = builder.build()
        second = builder.build()

        assert first == second
        assert first is not second
        assert first.nodes is not second.nodes
        assert first.links is not second.links

    def test_built_graph_is_not_affected_by_later_documents(self) -> None:
        builder = GraphBuilder().add_document(FOO)
        snapshot = builder.build()

        builder.add_document(BAR)

        assert list(snapshot.nodes) == ["foo"]
        assert list(builder.build().nodes) == ["foo", "bar"]

    def test_later_document_overwrites_node(self) -> None:
        builder = GraphBuilder()
        builder.add_document(_doc("foo", "# Old"))
        builder.add_document(_doc("foo", "# New"))

        assert builder.build().nodes["foo"].label == "New"

    def test_stats(self) -> None:
        builder = GraphBuilder().add_document(FOO).add_document(BAR)

        stats = builder.get_stats()

        assert (stats.node_count, stats.link_count) == (2, 1)
        assert stats.as_dict() == {"nodeCount": 2, "linkCount": 1}

    def test_reset(self) -> None:
        builder = GraphBuilder().add_document(TestImplicitLinks.ALPHA)

        builder.reset().add_document(TestImplicitLinks.LIBRARY)

        graph = builder.build()
        assert list(graph.nodes) == ["library"]
        assert graph.links == []


def test_to_networkx_flags_dangling_targets() -> None:
    graph = assemble([_doc("foo", "# Foo\n\n[[bar]] [[missing]]"), BAR])

    digraph = to_networkx(graph)

    assert digraph.nodes["bar"]["dangling"] is False
    assert digraph.nodes["missing"]["dangling"] is True
    assert digraph.number_of_edges() == 2


def test_summarize() -> None:
    graph = assemble([_doc("foo", "# Foo\n\n[[bar]] [[missing]]"), BAR, _doc("lonely", "# Lonely")])

    summary = summarize(graph)

    assert summary.node_count == 3
    assert summary.link_count == 2
    assert summary.dangling_link_count == 1
    assert summary.orphan_count == 1
    assert summary.component_count == 2
