"""Postman collection importer (schema v1 and v2.x).

v2 collections map folders to ``request_group`` nodes and keep
``prerequest``/``test`` scripts as ``script`` plugins bound to the owning
node. v1 collections carry no scripts we keep and yield a tree only.
"""

from __future__ import annotations

from typing import Any

from restload.errors import MalformedDocument
from restload.lib.json import dumps
from restload.lib.log import get_logger
from restload.models import ImportBundle, Plugin, TreeNode

from .base import (
    FORM_MULTIPART,
    FORM_URLENCODED,
    GRAPHQL_MIME,
    JSON_MIME,
    NO_AUTH,
    TEXT_MIME,
    make_folder,
    make_request,
    pair,
    require_mapping,
)
from .ids import new_id

logger = get_logger(__name__)

_RAW_LANGUAGE_MIME = {
    "json": JSON_MIME,
    "xml": "application/xml",
    "html": "text/html",
    "javascript": "application/javascript",
    "text": TEXT_MIME,
}


def looks_like_v2(payload: object) -> bool:
    if not isinstance(payload, dict):
        return False
    info = payload.get("info")
    return isinstance(info, dict) and isinstance(payload.get("item"), list)


def looks_like_v1(payload: object) -> bool:
    return isinstance(payload, dict) and isinstance(payload.get("requests"), list)


def looks_like(payload: object) -> bool:
    return looks_like_v2(payload) or looks_like_v1(payload)


def parse(content: Any, workspace_id: str) -> ImportBundle:
    """Dispatch on schema version; both versions share the bundle shape."""
    payload = require_mapping(content, "Postman")
    if looks_like_v2(payload):
        return parse_v2(payload, workspace_id)
    if looks_like_v1(payload):
        return ImportBundle(tree=parse_v1(payload, workspace_id))
    raise MalformedDocument("Postman export has neither 'info'/'item' (v2) nor 'requests' (v1)")


# -- shared helpers ------------------------------------------------------------


def _header_pairs(raw: Any) -> list[dict[str, Any]]:
    if isinstance(raw, str):
        headers = []
        for line in raw.splitlines():
            line = line.strip()
            if not line or ":" not in line:
                continue
            disabled = line.startswith("//")
            name, _, value = line.lstrip("/").strip().partition(":")
            headers.append(pair(name.strip(), value.strip(), disabled=disabled))
        return headers
    if isinstance(raw, list):
        return [
            pair(item.get("key"), item.get("value"), disabled=item.get("disabled") is True or item.get("enabled") is False)
            for item in raw
            if isinstance(item, dict)
        ]
    return []


def _content_type(headers: list[dict[str, Any]]) -> str | None:
    for header in headers:
        if header["name"].lower() == "content-type" and not header.get("disabled"):
            return header["value"].split(";", 1)[0].strip() or None
    return None


def _form_params(raw: Any) -> list[dict[str, Any]]:
    params = []
    for item in raw or []:
        if not isinstance(item, dict):
            continue
        disabled = item.get("disabled") is True or item.get("enabled") is False
        param = pair(item.get("key"), item.get("value"), disabled=disabled)
        if item.get("type") == "file":
            param["type"] = "file"
            param["value"] = ""
            src = item.get("src")
            if isinstance(src, str) and src:
                param["src"] = src
        params.append(param)
    return params


def _auth(raw: Any) -> dict[str, Any] | None:
    if not isinstance(raw, dict):
        return None
    auth_type = raw.get("type")
    if auth_type == "noauth":
        return {"type": NO_AUTH}
    values = raw.get(auth_type) if isinstance(auth_type, str) else None
    # v2.1 stores [{key, value}], v2.0 a flat mapping
    if isinstance(values, list):
        values = {item.get("key"): item.get("value") for item in values if isinstance(item, dict)}
    if not isinstance(values, dict):
        values = {}
    if auth_type == "bearer":
        return {"type": "bearer", "token": str(values.get("token") or "")}
    if auth_type == "basic":
        return {
            "type": "basic",
            "username": str(values.get("username") or ""),
            "password": str(values.get("password") or ""),
        }
    logger.debug("Unsupported Postman auth type", auth_type=auth_type)
    return None


def _description(raw: Any) -> str | None:
    if isinstance(raw, str):
        return raw or None
    if isinstance(raw, dict):
        content = raw.get("content")
        return content if isinstance(content, str) and content else None
    return None


# -- v2 ------------------------------------------------------------------------


def _url_v2(raw: Any) -> tuple[str, list[dict[str, Any]]]:
    if isinstance(raw, str):
        return raw, []
    if not isinstance(raw, dict):
        return "", []
    query = raw.get("query")
    parameters = [
        pair(item.get("key"), item.get("value"), disabled=item.get("disabled") is True)
        for item in query or []
        if isinstance(item, dict)
    ]
    url = raw.get("raw")
    if not isinstance(url, str):
        protocol = raw.get("protocol")
        host = raw.get("host")
        path = raw.get("path")
        host_text = ".".join(host) if isinstance(host, list) else str(host or "")
        path_text = "/".join(str(p) for p in path) if isinstance(path, list) else str(path or "")
        url = f"{protocol}://" if protocol else ""
        url += host_text
        if path_text:
            url += "/" + path_text.lstrip("/")
    if parameters:
        url = url.split("?", 1)[0]
    return url, parameters


def _body_v2(raw: Any, headers: list[dict[str, Any]]) -> dict[str, Any] | None:
    if not isinstance(raw, dict) or raw.get("disabled") is True:
        return None
    mode = raw.get("mode")
    if mode == "raw":
        options = raw.get("options")
        language = None
        if isinstance(options, dict) and isinstance(options.get("raw"), dict):
            language = options["raw"].get("language")
        mime = _RAW_LANGUAGE_MIME.get(language) if isinstance(language, str) else None
        return {"mimeType": mime or _content_type(headers) or TEXT_MIME, "text": str(raw.get("raw") or "")}
    if mode == "urlencoded":
        return {"mimeType": FORM_URLENCODED, "params": _form_params(raw.get("urlencoded"))}
    if mode == "formdata":
        return {"mimeType": FORM_MULTIPART, "params": _form_params(raw.get("formdata"))}
    if mode == "graphql":
        graphql = raw.get("graphql") if isinstance(raw.get("graphql"), dict) else {}
        return {
            "mimeType": GRAPHQL_MIME,
            "text": dumps({"query": graphql.get("query") or "", "variables": graphql.get("variables") or ""}),
        }
    if mode == "file":
        return {"mimeType": "application/octet-stream"}
    return None


def _variables(raw: Any) -> dict[str, Any]:
    environment: dict[str, Any] = {}
    for item in raw or []:
        if isinstance(item, dict) and item.get("disabled") is not True and item.get("key"):
            environment[str(item["key"])] = item.get("value")
    return environment


def _script_plugin(events: Any, target_id: str, workspace_id: str) -> Plugin | None:
    code = {"pre_request": "", "post_request": ""}
    for event in events or []:
        if not isinstance(event, dict):
            continue
        script = event.get("script")
        exec_lines = script.get("exec") if isinstance(script, dict) else None
        text = "\n".join(str(line) for line in exec_lines) if isinstance(exec_lines, list) else str(exec_lines or "")
        if event.get("listen") == "prerequest":
            code["pre_request"] = text
        elif event.get("listen") == "test":
            code["post_request"] = text
    if not code["pre_request"].strip() and not code["post_request"].strip():
        return None
    return {
        "id": new_id(),
        "name": "Postman Scripts",
        "type": "script",
        "code": code,
        "collectionId": target_id,
        "workspaceId": workspace_id,
        "enabled": True,
    }


def _items_v2(
    items: list[Any],
    parent: TreeNode,
    workspace_id: str,
    plugins: list[Plugin],
) -> None:
    for raw in items:
        if not isinstance(raw, dict):
            raise MalformedDocument("Postman items must be objects")
        node_id = str(raw.get("id") or raw.get("_postman_id") or new_id())
        name = str(raw.get("name") or "")
        if isinstance(raw.get("item"), list):
            node = make_folder(
                name,
                workspace_id=workspace_id,
                node_id=node_id,
                parent_id=parent["id"],
                description=_description(raw.get("description")),
                environment=_variables(raw.get("variable")),
            )
            auth = _auth(raw.get("auth"))
            if auth:
                node["authentication"] = auth
            _items_v2(raw["item"], node, workspace_id, plugins)
        else:
            request = raw.get("request")
            if isinstance(request, str):
                request = {"url": request, "method": "GET"}
            if not isinstance(request, dict):
                raise MalformedDocument(f"Postman item {name!r} has no request")
            headers = _header_pairs(request.get("header"))
            url, parameters = _url_v2(request.get("url"))
            node = make_request(
                name,
                workspace_id=workspace_id,
                node_id=node_id,
                parent_id=parent["id"],
                method=str(request.get("method") or "GET"),
                url=url,
                body=_body_v2(request.get("body"), headers),
                headers=headers,
                parameters=parameters,
                authentication=_auth(request.get("auth")),
                description=_description(request.get("description")),
            )
        plugin = _script_plugin(raw.get("event"), node_id, workspace_id)
        if plugin:
            plugins.append(plugin)
        parent["children"].append(node)


def parse_v2(payload: dict[str, Any], workspace_id: str) -> ImportBundle:
    info = payload["info"]
    root = make_folder(
        str(info.get("name") or "Postman Collection"),
        workspace_id=workspace_id,
        node_id=str(info.get("_postman_id") or new_id()),
        description=_description(info.get("description")),
        environment=_variables(payload.get("variable")),
    )
    auth = _auth(payload.get("auth"))
    if auth:
        root["authentication"] = auth
    plugins: list[Plugin] = []
    root_plugin = _script_plugin(payload.get("event"), root["id"], workspace_id)
    if root_plugin:
        plugins.append(root_plugin)
    _items_v2(payload["item"], root, workspace_id, plugins)
    return ImportBundle(tree=[root], plugins=plugins)


# -- v1 ------------------------------------------------------------------------


def _body_v1(raw: dict[str, Any], headers: list[dict[str, Any]]) -> dict[str, Any] | None:
    mode = raw.get("dataMode")
    if mode == "raw":
        text = raw.get("rawModeData")
        if not text:
            return None
        return {"mimeType": _content_type(headers) or TEXT_MIME, "text": str(text)}
    if mode == "urlencoded":
        return {"mimeType": FORM_URLENCODED, "params": _form_params(raw.get("data"))}
    if mode == "params":
        return {"mimeType": FORM_MULTIPART, "params": _form_params(raw.get("data"))}
    if mode == "binary":
        return {"mimeType": "application/octet-stream"}
    return None


def _request_v1(raw: dict[str, Any], parent_id: str, workspace_id: str) -> TreeNode:
    headers = _header_pairs(raw.get("headerData") if isinstance(raw.get("headerData"), list) else raw.get("headers"))
    return make_request(
        str(raw.get("name") or raw.get("url") or ""),
        workspace_id=workspace_id,
        node_id=str(raw.get("id") or new_id()),
        parent_id=parent_id,
        method=str(raw.get("method") or "GET"),
        url=str(raw.get("url") or ""),
        body=_body_v1(raw, headers),
        headers=headers,
        authentication=_auth(raw.get("auth")),
        description=_description(raw.get("description")),
    )


def parse_v1(payload: dict[str, Any], workspace_id: str) -> list[TreeNode]:
    requests: dict[str, dict[str, Any]] = {}
    unnamed: list[dict[str, Any]] = []
    for raw in payload["requests"]:
        if not isinstance(raw, dict):
            raise MalformedDocument("Postman v1 requests must be objects")
        if raw.get("id"):
            requests[str(raw["id"])] = raw
        else:
            unnamed.append(raw)

    root = make_folder(
        str(payload.get("name") or "Postman Collection"),
        workspace_id=workspace_id,
        node_id=str(payload.get("id") or new_id()),
        description=_description(payload.get("description")),
    )
    placed: set[str] = set()

    folders = [folder for folder in payload.get("folders") or [] if isinstance(folder, dict)]
    folder_order = payload.get("folders_order")
    if isinstance(folder_order, list):
        rank = {str(folder_id): index for index, folder_id in enumerate(folder_order)}
        folders.sort(key=lambda folder: rank.get(str(folder.get("id")), len(rank)))

    for raw_folder in folders:
        folder_id = str(raw_folder.get("id") or new_id())
        folder = make_folder(
            str(raw_folder.get("name") or ""),
            workspace_id=workspace_id,
            node_id=folder_id,
            parent_id=root["id"],
            description=_description(raw_folder.get("description")),
        )
        member_ids = [str(item) for item in raw_folder.get("order") or []]
        member_ids += [rid for rid, req in requests.items() if str(req.get("folder")) == folder_id and rid not in member_ids]
        for request_id in member_ids:
            if request_id in requests and request_id not in placed:
                folder["children"].append(_request_v1(requests[request_id], folder_id, workspace_id))
                placed.add(request_id)
        root["children"].append(folder)

    for request_id in [str(item) for item in payload.get("order") or []] + list(requests):
        if request_id in requests and request_id not in placed:
            root["children"].append(_request_v1(requests[request_id], root["id"], workspace_id))
            placed.add(request_id)
    for raw in unnamed:
        root["children"].append(_request_v1(raw, root["id"], workspace_id))

    return [root]


__all__ = ["looks_like", "looks_like_v1", "looks_like_v2", "parse", "parse_v1", "parse_v2"]
