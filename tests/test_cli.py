"""Command line entry point."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from markdown_graph.cli import build_arg_parser, main, run_cli
from markdown_graph.config import DEFAULT_OUTPUT_NAME


@pytest.fixture
def docs(tmp_path: Path) -> Path:
    directory = tmp_path / "docs"
    directory.mkdir()
    (directory / "foo.md").write_text("# Foo\n\nFoo content linking to [[bar]]", encoding="utf-8")
    (directory / "bar.md").write_text("# Bar\n\nBar content", encoding="utf-8")
    return directory


def test_run_cli_writes_graph_next_to_documents(docs: Path) -> None:
    result = run_cli(docs)

    assert result.success is True
    assert result.output_file == docs / DEFAULT_OUTPUT_NAME
    assert (result.node_count, result.link_count) == (2, 1)
    data = json.loads(result.output_file.read_text(encoding="utf-8"))
    assert set(data["nodes"]) == {"foo", "bar"}
    assert data["links"] == [{"source": "foo", "target": "bar"}]
    assert "Graph generated and written to" in result.message


def test_run_cli_relative_output_is_resolved_against_cwd(
    docs: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)

    result = run_cli(docs, Path("graph.json"), quiet=True)

    assert result.success is True
    assert result.output_file.resolve() == (tmp_path / "graph.json").resolve()
    assert (tmp_path / "graph.json").exists()


def test_run_cli_missing_directory(tmp_path: Path) -> None:
    result = run_cli(tmp_path / "missing")

    assert result.success is False
    assert result.message.startswith("Directory does not exist")
    assert result.output_file is None


def test_run_cli_without_implicit_links(docs: Path) -> None:
    (docs / "alpha.md").write_text("# Alpha\n\nThis is an awesome foo", encoding="utf-8")

    with_implicit = run_cli(docs)
    without_implicit = run_cli(docs, implicit_links=False)

    assert with_implicit.link_count == 2
    assert without_implicit.link_count == 1


def test_main_exits_with_error_for_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main([str(tmp_path / "missing"), "-q"])

    assert excinfo.value.code == 1


def test_main_generates_graph(docs: Path) -> None:
    output = docs / "out" / "graph.json"

    main([str(docs), "-o", str(output), "--section-sources", "--batch-size", "1"])

    assert json.loads(output.read_text(encoding="utf-8"))["links"] == [
        {"source": "foo", "target": "bar"}
    ]


def test_parser_defaults() -> None:
    args = build_arg_parser().parse_args([])

    assert args.directory is None
    assert args.output is None
    assert args.implicit_links is None
    assert args.section_link_sources is None
    assert args.watch is False


def test_verbose_and_quiet_are_exclusive() -> None:
    with pytest.raises(SystemExit):
        build_arg_parser().parse_args(["-v", "-q"])


def test_batch_size_must_be_positive(docs: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main([str(docs), "--batch-size", "0"])

    assert excinfo.value.code == 2
