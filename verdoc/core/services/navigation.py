"""
Navigation tree — the site-wide sidebar structure.

The tree mirrors the directory layout induced by every document's
relative path. Nodes live in a flat arena and refer to their children by
index, so the tree can be walked, mutated and serialised without nested
ownership.

Ordering is "first encounter" in the sorted document order; there is
no other sorting or rebalancing.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any

from verdoc.core.models.document import Document

DEFAULT_ORDER = 999
"""Sort key for documents without an explicit ``order``."""


@dataclass
class NavigationNode:
    """One entry in the navigation tree.

    Leaf nodes carry the relative path of their document; directory
    nodes have an empty path and no version.
    """

    title: str
    path: str = ""
    version: str | None = None
    children: list[int] = field(default_factory=list)

    @property
    def is_directory(self) -> bool:
        return not self.path


@dataclass
class NavigationTree:
    """Arena of navigation nodes plus the indices of the top level."""

    nodes: list[NavigationNode] = field(default_factory=list)
    roots: list[int] = field(default_factory=list)

    def _new_node(self, node: NavigationNode, siblings: list[int]) -> int:
        self.nodes.append(node)
        idx = len(self.nodes) - 1
        siblings.append(idx)
        return idx

    def add_path(self, path: PurePosixPath | str, title: str, version: str | None = None) -> int:
        """Insert a leaf for ``path``, creating directory nodes on the way.

        Directory components reuse an existing directory node of the same
        name at the same level. Two intended locations that share a
        directory name at one level end up in the same branch.

        Returns the index of the new leaf.
        """
        parts = PurePosixPath(path).parts
        siblings = self.roots

        for name in parts[:-1]:
            existing = next(
                (i for i in siblings
                 if self.nodes[i].is_directory and self.nodes[i].title == name),
                None,
            )
            if existing is None:
                existing = self._new_node(NavigationNode(title=name), siblings)
            siblings = self.nodes[existing].children

        leaf = NavigationNode(title=title, path=PurePosixPath(path).as_posix(), version=version)
        return self._new_node(leaf, siblings)

    def walk(self) -> Iterator[tuple[int, NavigationNode]]:
        """Depth-first pre-order walk yielding ``(depth, node)``."""
        stack: list[tuple[int, int]] = [(0, i) for i in reversed(self.roots)]
        while stack:
            depth, idx = stack.pop()
            node = self.nodes[idx]
            yield depth, node
            stack.extend((depth + 1, c) for c in reversed(node.children))

    def leaf_paths(self) -> list[str]:
        """Relative paths of every leaf reachable from the top level."""
        return [node.path for _, node in self.walk() if not node.is_directory]

    def to_dict(self) -> list[dict[str, Any]]:
        """Nested plain-dict form (for JSON output and debugging)."""
        def _node(idx: int) -> dict[str, Any]:
            node = self.nodes[idx]
            return {
                "title": node.title,
                "path": node.path,
                "version": node.version,
                "children": [_node(c) for c in node.children],
            }

        return [_node(i) for i in self.roots]


def sort_documents(documents: Iterable[Document]) -> list[Document]:
    """Sort ascending by explicit order; ties keep encounter order."""
    return sorted(
        documents,
        key=lambda d: d.order if d.order is not None else DEFAULT_ORDER,
    )


def nav_title(doc: Document) -> str:
    """Title for a leaf: the document title, else its file stem."""
    return doc.title or doc.relative_path.stem or "Untitled"


def build_navigation(documents: Sequence[Document]) -> NavigationTree:
    """Build the tree from documents already in their final order."""
    tree = NavigationTree()
    for doc in documents:
        tree.add_path(doc.relative_path, nav_title(doc), doc.version)
    return tree
