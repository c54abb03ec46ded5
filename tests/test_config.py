from __future__ import annotations

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from markdown_graph.config import (
    DEFAULT_OUTPUT_NAME,
    IMPLICIT_LINKS_ENV,
    SECTION_SOURCES_ENV,
    GardenConfig,
    get_env_flag,
)
from markdown_graph.logging_utils import LOG_LEVEL_ENV, setup_logging


@pytest.mark.parametrize(
    ("value", "expected"),
    [("1", True), ("true", True), (" Yes ", True), ("on", True), ("0", False), ("off", False)],
)
def test_get_env_flag(monkeypatch: pytest.MonkeyPatch, value: str, expected: bool) -> None:
    monkeypatch.setenv("MARKDOWN_GRAPH_TEST_FLAG", value)

    assert get_env_flag("MARKDOWN_GRAPH_TEST_FLAG") is expected


def test_get_env_flag_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MARKDOWN_GRAPH_TEST_FLAG", raising=False)

    assert get_env_flag("MARKDOWN_GRAPH_TEST_FLAG", True) is True


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(IMPLICIT_LINKS_ENV, raising=False)
    monkeypatch.delenv(SECTION_SOURCES_ENV, raising=False)

    config = GardenConfig.from_env()

    assert config.source == "file"
    assert config.batch_size == 8
    assert config.implicit_links is True
    assert config.section_link_sources is False
    assert config.excludes == ["node_modules", "dist", ".git"]


def test_environment_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(IMPLICIT_LINKS_ENV, "0")
    monkeypatch.setenv(SECTION_SOURCES_ENV, "1")

    config = GardenConfig.from_env()

    assert config.implicit_links is False
    assert config.section_link_sources is True


def test_explicit_overrides_win_and_none_is_ignored(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(IMPLICIT_LINKS_ENV, "0")

    config = GardenConfig.from_env(implicit_links=True, batch_size=None)

    assert config.implicit_links is True
    assert config.batch_size == 8


def test_resolved_output_path(tmp_path: Path) -> None:
    assert GardenConfig(path=tmp_path).resolved_output_path() == tmp_path / DEFAULT_OUTPUT_NAME
    custom = tmp_path / "graph.json"
    assert GardenConfig(path=tmp_path, output_path=custom).resolved_output_path() == custom


def test_builder_options() -> None:
    options = GardenConfig(implicit_links=False, no_sections=True).builder_options()

    assert options == {
        "implicit_links": False,
        "section_link_sources": False,
        "no_sections": True,
        "just_node_names": False,
    }


@pytest.mark.parametrize("field", [{"batch_size": 0}, {"poll_interval": 0}, {"source": "s3"}])
def test_invalid_values_are_rejected(field: dict) -> None:
    with pytest.raises(ValidationError):
        GardenConfig(**field)


def test_setup_logging_level_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    root = logging.getLogger()
    previous = root.level
    monkeypatch.setenv(LOG_LEVEL_ENV, "warning")
    try:
        setup_logging()
        assert root.level == logging.WARNING
        setup_logging("debug")
        assert root.level == logging.DEBUG
    finally:
        root.setLevel(previous)


def test_setup_logging_adds_one_file_handler(tmp_path: Path) -> None:
    root = logging.getLogger()
    previous = root.level
    log_file = tmp_path / "logs" / "run.log"
    try:
        setup_logging("info", log_file)
        setup_logging("info", log_file)
        handlers = [
            handler
            for handler in root.handlers
            if isinstance(handler, logging.FileHandler)
            and Path(handler.baseFilename) == log_file.resolve()
        ]
        assert len(handlers) == 1
        logging.getLogger("markdown_graph.test").info("written to file")
        handlers[0].flush()
        assert "written to file" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in [h for h in root.handlers if getattr(h, "baseFilename", None)]:
            if Path(handler.baseFilename) != log_file.resolve():
                continue
            root.removeHandler(handler)
            handler.close()
        root.setLevel(previous)
