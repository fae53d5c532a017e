"""Insomnia export importer (``__export_format`` 4).

Only ``request_group``, ``request`` and ``websocket_request`` resources become
tree nodes. Resources parented to a workspace (or to anything we drop) are
roots; siblings keep Insomnia's ``metaSortKey`` order.
"""

from __future__ import annotations

from typing import Any

from restload.errors import MalformedDocument
from restload.lib.log import get_logger
from restload.models import TreeNode

from .base import (
    FORM_MULTIPART,
    FORM_URLENCODED,
    NO_AUTH,
    NO_BODY,
    SOCKET,
    build_tree,
    make_folder,
    make_request,
    pair,
    require_list,
    require_mapping,
)

logger = get_logger(__name__)

_KEPT_TYPES = frozenset({"request_group", "request", "websocket_request"})


def looks_like(payload: object) -> bool:
    if not isinstance(payload, dict):
        return False
    return payload.get("_type") == "export" or (
        isinstance(payload.get("resources"), list) and "__export_format" in payload
    )


def _pairs(raw: Any) -> list[dict[str, Any]]:
    return [
        pair(item.get("name"), item.get("value"), disabled=item.get("disabled") is True)
        for item in raw or []
        if isinstance(item, dict)
    ]


def _body(raw: Any) -> dict[str, Any]:
    if not isinstance(raw, dict) or not raw.get("mimeType"):
        return {"mimeType": NO_BODY}
    mime = str(raw["mimeType"])
    if mime in (FORM_URLENCODED, FORM_MULTIPART):
        params = []
        for item in raw.get("params") or []:
            if not isinstance(item, dict):
                continue
            param = pair(item.get("name"), item.get("value"), disabled=item.get("disabled") is True)
            if item.get("type") == "file":
                param["type"] = "file"
                if item.get("fileName"):
                    param["src"] = str(item["fileName"])
            params.append(param)
        return {"mimeType": mime, "params": params}
    return {"mimeType": mime, "text": str(raw.get("text") or "")}


def _authentication(raw: Any) -> dict[str, Any]:
    if not isinstance(raw, dict) or not raw.get("type") or raw.get("disabled") is True:
        return {"type": NO_AUTH}
    auth_type = raw["type"]
    if auth_type == "bearer":
        return {"type": "bearer", "token": str(raw.get("token") or ""), "prefix": str(raw.get("prefix") or "")}
    if auth_type == "basic":
        return {"type": "basic", "username": str(raw.get("username") or ""), "password": str(raw.get("password") or "")}
    logger.debug("Unsupported Insomnia auth type", auth_type=auth_type)
    return {"type": NO_AUTH}


def _node(resource: dict[str, Any], workspace_id: str) -> TreeNode:
    resource_type = resource["_type"]
    name = str(resource.get("name") or "")
    common = {
        "workspace_id": workspace_id,
        "node_id": str(resource["_id"]),
        "parent_id": str(resource["parentId"]) if resource.get("parentId") else None,
        "description": resource.get("description") or None,
    }
    if resource_type == "request_group":
        environment = resource.get("environment")
        node = make_folder(name, environment=environment if isinstance(environment, dict) else None, **common)
    elif resource_type == "websocket_request":
        node = make_request(
            name,
            url=str(resource.get("url") or ""),
            headers=_pairs(resource.get("headers")),
            parameters=_pairs(resource.get("parameters")),
            node_type=SOCKET,
            **common,
        )
    else:
        node = make_request(
            name,
            method=str(resource.get("method") or "GET"),
            url=str(resource.get("url") or ""),
            body=_body(resource.get("body")),
            headers=_pairs(resource.get("headers")),
            parameters=_pairs(resource.get("parameters")),
            authentication=_authentication(resource.get("authentication")),
            **common,
        )
    sort_key = resource.get("metaSortKey")
    if isinstance(sort_key, (int, float)) and not isinstance(sort_key, bool):
        node["sortOrder"] = sort_key
    return node


def parse(content: Any, workspace_id: str) -> list[TreeNode]:
    payload = require_mapping(content, "Insomnia")
    resources = require_list(payload, "resources", "Insomnia")

    nodes: list[TreeNode] = []
    for resource in resources:
        if not isinstance(resource, dict):
            raise MalformedDocument("Insomnia resources must be objects")
        if resource.get("_type") not in _KEPT_TYPES:
            continue
        if not resource.get("_id"):
            raise MalformedDocument(f"Insomnia {resource.get('_type')} resource without '_id'")
        nodes.append(_node(resource, workspace_id))

    kept_ids = {node["id"] for node in nodes}
    for node in nodes:
        if node["parentId"] not in kept_ids:
            node["parentId"] = None
    return build_tree(nodes, sort_key="sortOrder")


__all__ = ["looks_like", "parse"]
