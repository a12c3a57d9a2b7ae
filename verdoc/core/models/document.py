"""
Document model — one source file as it moves through the build.

A ``Document`` is created once per source file during collection and
discarded at the end of the build. Only ``backlinks`` changes after
creation (during the backlink pass).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Frontmatter(BaseModel):
    """Structured metadata header of a document.

    Unknown keys are kept as extra fields and exposed via :attr:`extra`.
    """

    model_config = ConfigDict(extra="allow")

    title: str | None = None
    version: str | None = None
    tags: list[str] | None = None
    author: str | None = None
    description: str | None = None
    order: int | None = Field(default=None, ge=0)

    @field_validator("title", "version", "author", "description", mode="before")
    @classmethod
    def _scalar_to_str(cls, value: Any) -> Any:
        # JSON/TOML headers carry typed numbers, e.g. `version = 2`
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_to_str(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [str(v) if isinstance(v, (int, float)) else v for v in value]
        return value

    @property
    def extra(self) -> dict[str, Any]:
        """Additional key/value pairs not covered by the known fields."""
        return dict(self.model_extra or {})


def infer_version(relative_path: PurePosixPath | Path) -> str | None:
    """Derive a version tag from the first segment of a relative path.

    The segment qualifies when it is ``latest`` or starts with ``v`` and
    the path has at least one more segment below it.
    """
    parts = PurePosixPath(relative_path).parts
    if len(parts) < 2:
        return None
    first = parts[0]
    if first == "latest" or first.startswith("v"):
        return first
    return None


@dataclass
class Document:
    """A parsed, transformed source document."""

    frontmatter: Frontmatter
    content: str                        # Body after link rewriting
    html_content: str
    path: Path                          # Absolute source path
    relative_path: PurePosixPath        # Relative to the source root
    version: str | None = None
    links: list[str] = field(default_factory=list)
    backlinks: list[str] = field(default_factory=list)

    @property
    def title(self) -> str | None:
        return self.frontmatter.title

    @property
    def label(self) -> str:
        """Title, or the relative path when untitled."""
        return self.frontmatter.title or self.relative_path.as_posix()

    @property
    def order(self) -> int | None:
        return self.frontmatter.order
