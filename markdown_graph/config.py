from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

DEFAULT_OUTPUT_NAME = ".garden-graph.json"
DEFAULT_BATCH_SIZE = 8
DEFAULT_POLL_INTERVAL = 0.5
DEFAULT_EXCLUDES = ["node_modules", "dist", ".git"]

IMPLICIT_LINKS_ENV = "MARKDOWN_GRAPH_IMPLICIT_LINKS"
SECTION_SOURCES_ENV = "MARKDOWN_GRAPH_SECTION_SOURCES"


def get_env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean flag from environment variables."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class GardenConfig(BaseModel):
    """Where documents come from, where the graph goes and how links are derived."""

    source: Literal["file", "memory"] = "file"
    path: Optional[Path] = None
    content: Dict[str, str] = Field(default_factory=dict)
    output_path: Optional[Path] = None
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1)
    implicit_links: bool = True
    section_link_sources: bool = False
    excludes: List[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDES))
    include_hidden: bool = False
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    just_node_names: bool = False
    no_sections: bool = False

    @classmethod
    def from_env(cls, **overrides: Any) -> "GardenConfig":
        """Defaults, then environment flags, then explicit overrides."""
        values: Dict[str, Any] = {
            "implicit_links": get_env_flag(IMPLICIT_LINKS_ENV, True),
            "section_link_sources": get_env_flag(SECTION_SOURCES_ENV, False),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    def resolved_output_path(self) -> Path:
        if self.output_path is not None:
            return self.output_path
        return (self.path or Path.cwd()) / DEFAULT_OUTPUT_NAME

    def builder_options(self) -> Dict[str, bool]:
        return {
            "implicit_links": self.implicit_links,
            "section_link_sources": self.section_link_sources,
            "no_sections": self.no_sections,
            "just_node_names": self.just_node_names,
        }
