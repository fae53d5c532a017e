"""Canonical collection-tree node builders shared by the format importers."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from restload.errors import MalformedDocument
from restload.models import TreeNode

FOLDER = "request_group"
REQUEST = "request"
SOCKET = "socket"
CONTAINER_TYPES = frozenset({FOLDER})

NO_BODY = "No Body"
NO_AUTH = "No Auth"
JSON_MIME = "application/json"
FORM_URLENCODED = "application/x-www-form-urlencoded"
FORM_MULTIPART = "multipart/form-data"
TEXT_MIME = "text/plain"
GRAPHQL_MIME = "application/graphql"


def make_folder(
    name: str,
    *,
    workspace_id: str,
    node_id: str | None = None,
    parent_id: str | None = None,
    description: str | None = None,
    environment: Mapping[str, Any] | None = None,
) -> TreeNode:
    node: TreeNode = {
        "id": node_id,
        "type": FOLDER,
        "name": name,
        "parentId": parent_id,
        "workspaceId": workspace_id,
        "children": [],
    }
    if description:
        node["description"] = description
    if environment:
        node["environment"] = dict(environment)
    return node


def make_request(
    name: str,
    *,
    workspace_id: str,
    method: str = "GET",
    url: str = "",
    node_id: str | None = None,
    parent_id: str | None = None,
    body: Mapping[str, Any] | None = None,
    headers: Iterable[Mapping[str, Any]] = (),
    parameters: Iterable[Mapping[str, Any]] = (),
    authentication: Mapping[str, Any] | None = None,
    description: str | None = None,
    node_type: str = REQUEST,
) -> TreeNode:
    node: TreeNode = {
        "id": node_id,
        "type": node_type,
        "name": name,
        "method": (method or "GET").upper(),
        "url": url or "",
        "body": dict(body) if body else {"mimeType": NO_BODY},
        "headers": [dict(item) for item in headers],
        "parameters": [dict(item) for item in parameters],
        "authentication": dict(authentication) if authentication else {"type": NO_AUTH},
        "parentId": parent_id,
        "workspaceId": workspace_id,
    }
    if description:
        node["description"] = description
    return node


def pair(name: Any, value: Any, *, disabled: bool = False) -> dict[str, Any]:
    item: dict[str, Any] = {"name": "" if name is None else str(name), "value": "" if value is None else str(value)}
    if disabled:
        item["disabled"] = True
    return item


def build_tree(
    nodes: Iterable[TreeNode],
    *,
    sort_key: str | None = None,
) -> list[TreeNode]:
    """Nest flat nodes under their ``parentId``.

    Nodes whose parent is not among ``nodes`` become roots. Container nodes
    always get a ``children`` list; when ``sort_key`` is set, siblings are
    ordered by it with missing values last and input order as tie-break.
    """
    items = list(nodes)
    by_id: dict[str, TreeNode] = {}
    for node in items:
        node_id = node.get("id")
        if isinstance(node_id, str) and node_id:
            by_id[node_id] = node
        if node.get("type") in CONTAINER_TYPES:
            node["children"] = []

    roots: list[TreeNode] = []
    for node in items:
        parent = by_id.get(node.get("parentId") or "")
        if parent is None or parent is node or parent.get("type") not in CONTAINER_TYPES:
            roots.append(node)
        else:
            parent["children"].append(node)

    if sort_key is not None:
        _sort_siblings(roots, sort_key)
    return roots


def _sort_siblings(nodes: list[TreeNode], sort_key: str) -> None:
    def _key(indexed: tuple[int, TreeNode]) -> tuple[bool, float, int]:
        index, node = indexed
        value = node.get(sort_key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return (True, 0.0, index)
        return (False, float(value), index)

    ordered = [node for _, node in sorted(enumerate(nodes), key=_key)]
    nodes[:] = ordered
    for node in nodes:
        children = node.get("children")
        if isinstance(children, list):
            _sort_siblings(children, sort_key)


def require_mapping(content: Any, fmt: str) -> dict[str, Any]:
    if not isinstance(content, dict):
        raise MalformedDocument(f"{fmt} export must be a JSON object, got {type(content).__name__}")
    return content


def require_list(payload: Mapping[str, Any], key: str, fmt: str) -> list[Any]:
    value = payload.get(key)
    if not isinstance(value, list):
        raise MalformedDocument(f"{fmt} export is missing a '{key}' list")
    return value


__all__ = [
    "CONTAINER_TYPES",
    "FOLDER",
    "FORM_MULTIPART",
    "FORM_URLENCODED",
    "GRAPHQL_MIME",
    "JSON_MIME",
    "NO_AUTH",
    "NO_BODY",
    "REQUEST",
    "SOCKET",
    "TEXT_MIME",
    "build_tree",
    "make_folder",
    "make_request",
    "pair",
    "require_list",
    "require_mapping",
]
