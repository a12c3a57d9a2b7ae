"""
Frontmatter parsing — split a raw document into header and body.

Three mutually exclusive header styles are recognised at the very start
of the text:

    ---            ```json          +++
    title: A       {"title": "A"}   title = "A"
    ---            ```              +++

A header that is present but fails to parse never fails the document:
the result carries a default header plus a diagnostic, so callers can
log the problem and keep building.
"""

from __future__ import annotations

import json
import re
import tomllib
from dataclasses import dataclass
from typing import Any

import yaml
from pydantic import ValidationError

from verdoc.core.models.document import Frontmatter

_YAML_RE = re.compile(r"\A---\n(?:(.*?)\n)?---(?:\n|\Z)", re.DOTALL)
_JSON_RE = re.compile(r"\A```json\n(?:(.*?)\n)?```(?:\n|\Z)", re.DOTALL)
_TOML_RE = re.compile(r"\A\+\+\+\n(?:(.*?)\n)?\+\+\+(?:\n|\Z)", re.DOTALL)


class HeaderParseError(ValueError):
    """Raised internally when a detected header cannot be decoded."""


@dataclass(frozen=True)
class HeaderResult:
    """Outcome of parsing a document header.

    Either the header parsed (``ok``), or a default header was substituted
    and ``diagnostic`` says why.
    """

    header: Frontmatter
    body: str
    style: str | None = None            # "yaml" | "json" | "toml" | None
    diagnostic: str = ""

    @property
    def ok(self) -> bool:
        return not self.diagnostic

    @property
    def fallback(self) -> bool:
        return bool(self.diagnostic)


_KEPT_YAML_TAGS = frozenset({"tag:yaml.org,2002:null", "tag:yaml.org,2002:merge"})


class _HeaderLoader(yaml.SafeLoader):
    """SafeLoader that keeps bools, numbers and dates as their literal text.

    `version: 1.10` stays "1.10" and `title: Yes` stays "Yes". Nulls still
    resolve to None.
    """


_HeaderLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag in _KEPT_YAML_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _load_yaml(raw: str) -> Any:
    try:
        return yaml.load(raw, Loader=_HeaderLoader)
    except yaml.YAMLError as e:
        raise HeaderParseError(f"invalid YAML header: {e}") from e


def _load_json(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise HeaderParseError(f"invalid JSON header: {e.msg}") from e


def _load_toml(raw: str) -> Any:
    try:
        return tomllib.loads(raw)
    except tomllib.TOMLDecodeError as e:
        raise HeaderParseError(f"invalid TOML header: {e}") from e


_LOADERS = {"yaml": _load_yaml, "json": _load_json, "toml": _load_toml}


def _to_frontmatter(data: Any, style: str) -> Frontmatter:
    if data is None and style == "yaml":
        return Frontmatter()
    if not isinstance(data, dict):
        raise HeaderParseError(
            f"{style.upper()} header must be a mapping, got {type(data).__name__}"
        )
    try:
        return Frontmatter.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        loc = ".".join(str(p) for p in first["loc"])
        raise HeaderParseError(f"{style.upper()} header field '{loc}': {first['msg']}") from e


def parse_header(text: str) -> HeaderResult:
    """Detect and parse a header at the start of ``text``.

    When a YAML header fails to parse, the body is still the text after
    the closing delimiter. When a JSON or TOML header fails, the whole
    input is kept as the body.
    """
    for style, pattern in (("yaml", _YAML_RE), ("json", _JSON_RE), ("toml", _TOML_RE)):
        m = pattern.match(text)
        if not m:
            continue

        raw = m.group(1) or ""
        body = text[m.end():]
        try:
            header = _to_frontmatter(_LOADERS[style](raw), style)
        except HeaderParseError as e:
            kept = body if style == "yaml" else text
            return HeaderResult(Frontmatter(), kept, style=style, diagnostic=str(e))
        return HeaderResult(header, body, style=style)

    return HeaderResult(Frontmatter(), text)
