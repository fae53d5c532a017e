"""Native export format: the canonical tree serialized as a flat list.

Shape::

    {"exportedFrom": "Restload-1.0.0",
     "collection": [{"id", "type", "parentId", ...}, ...],
     "plugins": [...], "environments": [...]}

Items may also be nested through ``children``; legacy exports spell the id
and type keys ``_id`` / ``_type``.
"""

from __future__ import annotations

from typing import Any

from restload.errors import MalformedDocument
from restload.models import ImportBundle, TreeNode

from .base import FOLDER, REQUEST, SOCKET, build_tree, require_mapping
from .ids import new_id

_NODE_TYPES = frozenset({FOLDER, REQUEST, SOCKET})


def looks_like(payload: object) -> bool:
    if not isinstance(payload, dict):
        return False
    exported_from = payload.get("exportedFrom")
    return isinstance(exported_from, str) or (
        isinstance(payload.get("collection"), list) and "info" not in payload
    )


def _canonical(raw: dict[str, Any], workspace_id: str) -> TreeNode:
    node = dict(raw)
    if "_id" in node:
        node.setdefault("id", node.pop("_id"))
    if "_type" in node:
        node.setdefault("type", node.pop("_type"))
    node_type = node.get("type")
    if node_type not in _NODE_TYPES:
        raise MalformedDocument(f"Unknown collection item type {node_type!r}")
    node["workspaceId"] = workspace_id
    node.setdefault("parentId", None)
    return node


def _flatten(items: list[Any], workspace_id: str, parent_id: str | None, out: list[TreeNode]) -> None:
    for raw in items:
        if not isinstance(raw, dict):
            raise MalformedDocument("Collection items must be objects")
        node = _canonical(raw, workspace_id)
        children = node.pop("children", None)
        if parent_id is not None:
            node["parentId"] = parent_id
        if children:
            if not isinstance(children, list):
                raise MalformedDocument("'children' must be a list")
            if not node.get("id"):
                node["id"] = new_id()
            out.append(node)
            _flatten(children, workspace_id, node["id"], out)
        else:
            out.append(node)


def parse(content: Any, workspace_id: str) -> ImportBundle:
    payload = {"collection": content} if isinstance(content, list) else require_mapping(content, "Native")
    collection = payload.get("collection")
    if not isinstance(collection, list):
        raise MalformedDocument("Native export is missing a 'collection' list")

    flat: list[TreeNode] = []
    _flatten(collection, workspace_id, None, flat)
    tree = build_tree(flat, sort_key="sortOrder")

    plugins = []
    for raw in payload.get("plugins") or []:
        if not isinstance(raw, dict):
            raise MalformedDocument("Plugins must be objects")
        plugin = dict(raw)
        if "_id" in plugin:
            plugin.setdefault("id", plugin.pop("_id"))
        plugin["workspaceId"] = workspace_id
        plugins.append(plugin)

    environments = payload.get("environments") or []
    if not isinstance(environments, list):
        raise MalformedDocument("Native export 'environments' must be a list")

    return ImportBundle(tree=tree, plugins=plugins, environments=[dict(env) for env in environments if isinstance(env, dict)])


__all__ = ["looks_like", "parse"]
