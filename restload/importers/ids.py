"""Identifier generation and remapping for imported collection trees.

Imported documents carry ids that are either missing, scoped to the source
document, or already taken in the target workspace. ``remap`` assigns every
node a fresh id and rewrites parent links so trees from several sources can be
concatenated safely.
"""

from __future__ import annotations

import secrets
from collections.abc import Iterable, Iterator
from typing import Any

from restload.models import Plugin, TreeNode

_ID_ALPHABET = "useandom-26T198340PX75pxJACKVERYMINDBUSHWOLF_GQZbfghjklqvwyzrict"
_ID_SIZE = 21


def new_id(size: int = _ID_SIZE) -> str:
    """Random url-safe identifier (nanoid alphabet, 21 chars by default)."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(size))


def flatten_tree(tree: Iterable[TreeNode]) -> Iterator[TreeNode]:
    """Yield every node depth-first, parents before children."""
    stack = list(reversed(list(tree)))
    while stack:
        node = stack.pop()
        yield node
        children = node.get("children")
        if isinstance(children, list):
            stack.extend(reversed(children))


def remap(tree: list[TreeNode]) -> dict[str, str]:
    """Give every node a fresh id and rewrite parent references in place.

    Returns the old-id -> new-id mapping. Nodes without an id get one but no
    mapping entry. A root's ``parentId`` is rewritten only when it names a node
    of this tree; otherwise it is an external parent and is kept.
    """
    mapping: dict[str, str] = {}
    for node in flatten_tree(tree):
        old = node.get("id")
        fresh = new_id()
        if isinstance(old, str) and old:
            mapping[old] = fresh
        node["id"] = fresh

    def _relink(nodes: list[TreeNode], parent_id: str | None) -> None:
        for node in nodes:
            if parent_id is not None:
                node["parentId"] = parent_id
            else:
                current = node.get("parentId")
                node["parentId"] = mapping.get(current, current) if isinstance(current, str) else None
            children = node.get("children")
            if isinstance(children, list):
                _relink(children, node["id"])

    _relink(tree, None)
    return mapping


def remap_plugins(plugins: Iterable[Plugin], mapping: dict[str, str]) -> None:
    """Point plugins at remapped nodes; unknown targets are left untouched."""
    for plugin in plugins:
        target: Any = plugin.get("collectionId")
        if isinstance(target, str) and target in mapping:
            plugin["collectionId"] = mapping[target]


__all__ = ["flatten_tree", "new_id", "remap", "remap_plugins"]
