"""OpenAPI 3.x / Swagger 2.0 importer.

The document is read as text (YAML or JSON, PyYAML handles both). Every
operation becomes a request; operations are grouped into folders by their
first tag under a root folder named after ``info.title``. Path templates such
as ``/pets/{petId}`` are kept verbatim in the request URL.
"""

from __future__ import annotations

from typing import Any

import yaml

from restload.errors import MalformedDocument
from restload.lib.json import dumps
from restload.models import TreeNode

from .base import FORM_MULTIPART, FORM_URLENCODED, JSON_MIME, make_folder, make_request, pair

_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")
_MAX_REF_DEPTH = 16


def looks_like(payload: object) -> bool:
    if isinstance(payload, str):
        head = payload.lstrip()[:512]
        return "openapi" in head or "swagger" in head
    return isinstance(payload, dict) and ("openapi" in payload or "swagger" in payload)


def load_document(text: str) -> dict[str, Any]:
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise MalformedDocument(f"OpenAPI document is not valid YAML/JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise MalformedDocument("OpenAPI document must be a mapping")
    if "openapi" not in document and "swagger" not in document:
        raise MalformedDocument("OpenAPI document declares neither 'openapi' nor 'swagger'")
    paths = document.get("paths", {})
    if not isinstance(paths, dict):
        raise MalformedDocument("OpenAPI 'paths' must be a mapping")
    return document


class _Resolver:
    def __init__(self, document: dict[str, Any]) -> None:
        self.document = document

    def resolve(self, value: Any, depth: int = 0) -> Any:
        while isinstance(value, dict) and isinstance(value.get("$ref"), str) and depth < _MAX_REF_DEPTH:
            value = self._lookup(value["$ref"])
            depth += 1
        return value

    def _lookup(self, ref: str) -> Any:
        if not ref.startswith("#/"):
            return {}
        target: Any = self.document
        for part in ref[2:].split("/"):
            part = part.replace("~1", "/").replace("~0", "~")
            if not isinstance(target, dict) or part not in target:
                return {}
            target = target[part]
        return target


def _base_url(document: dict[str, Any]) -> str:
    if "openapi" in document:
        servers = document.get("servers")
        if isinstance(servers, list) and servers and isinstance(servers[0], dict):
            url = str(servers[0].get("url") or "")
            variables = servers[0].get("variables")
            if isinstance(variables, dict):
                for name, spec in variables.items():
                    if isinstance(spec, dict) and "default" in spec:
                        url = url.replace("{" + str(name) + "}", str(spec["default"]))
            return url.rstrip("/")
        return ""
    host = document.get("host")
    base_path = str(document.get("basePath") or "")
    if not host:
        return base_path.rstrip("/")
    schemes = document.get("schemes")
    scheme = schemes[0] if isinstance(schemes, list) and schemes else "https"
    return f"{scheme}://{host}{base_path}".rstrip("/")


def _example(schema_or_media: Any, resolver: _Resolver) -> Any:
    """Best-effort example value from a media type object or a schema."""
    node = resolver.resolve(schema_or_media)
    if not isinstance(node, dict):
        return None
    if "example" in node:
        return node["example"]
    examples = node.get("examples")
    if isinstance(examples, dict) and examples:
        first = resolver.resolve(next(iter(examples.values())))
        if isinstance(first, dict) and "value" in first:
            return first["value"]
    schema = resolver.resolve(node.get("schema"))
    if isinstance(schema, dict) and schema is not node:
        if "example" in schema:
            return schema["example"]
        if "default" in schema:
            return schema["default"]
        properties = schema.get("properties")
        if isinstance(properties, dict):
            sample = {}
            for key, prop in properties.items():
                prop = resolver.resolve(prop)
                if isinstance(prop, dict) and ("example" in prop or "default" in prop):
                    sample[key] = prop.get("example", prop.get("default"))
            return sample or None
    return None


def _param_value(param: dict[str, Any], resolver: _Resolver) -> str:
    value = param.get("example")
    if value is None:
        value = _example(param, resolver)
    if value is None:
        value = param.get("default")
    if value is None:
        return ""
    return value if isinstance(value, str) else dumps(value)


def _form_params_from_schema(schema: Any, resolver: _Resolver) -> list[dict[str, Any]]:
    schema = resolver.resolve(schema)
    if not isinstance(schema, dict) or not isinstance(schema.get("properties"), dict):
        return []
    params = []
    for key, prop in schema["properties"].items():
        prop = resolver.resolve(prop)
        value = prop.get("example", prop.get("default", "")) if isinstance(prop, dict) else ""
        param = pair(key, value if isinstance(value, str) else dumps(value))
        if isinstance(prop, dict) and prop.get("format") == "binary":
            param["type"] = "file"
            param["value"] = ""
        params.append(param)
    return params


def _body_v3(operation: dict[str, Any], resolver: _Resolver) -> dict[str, Any] | None:
    request_body = resolver.resolve(operation.get("requestBody"))
    if not isinstance(request_body, dict):
        return None
    content = request_body.get("content")
    if not isinstance(content, dict) or not content:
        return None
    if JSON_MIME in content:
        mime = JSON_MIME
    else:
        mime = next(iter(content))
    media = content[mime]
    if mime in (FORM_URLENCODED, FORM_MULTIPART):
        schema = media.get("schema") if isinstance(media, dict) else None
        return {"mimeType": mime, "params": _form_params_from_schema(schema, resolver)}
    example = _example(media, resolver)
    if example is None:
        text = ""
    elif isinstance(example, str):
        text = example
    else:
        text = dumps(example, indent=True)
    return {"mimeType": mime, "text": text}


def _body_v2(
    operation: dict[str, Any],
    params: list[dict[str, Any]],
    document: dict[str, Any],
    resolver: _Resolver,
) -> dict[str, Any] | None:
    consumes = operation.get("consumes") or document.get("consumes") or []
    form = [p for p in params if p.get("in") == "formData"]
    if form:
        mime = FORM_MULTIPART if FORM_MULTIPART in consumes else FORM_URLENCODED
        items = []
        for param in form:
            item = pair(param.get("name"), _param_value(param, resolver))
            if param.get("type") == "file":
                item["type"] = "file"
                item["value"] = ""
            items.append(item)
        return {"mimeType": mime, "params": items}
    body = next((p for p in params if p.get("in") == "body"), None)
    if body is None:
        return None
    mime = consumes[0] if isinstance(consumes, list) and consumes else JSON_MIME
    example = _example(body, resolver)
    text = "" if example is None else example if isinstance(example, str) else dumps(example, indent=True)
    return {"mimeType": mime, "text": text}


def _merged_parameters(path_item: dict[str, Any], operation: dict[str, Any], resolver: _Resolver) -> list[dict[str, Any]]:
    merged: dict[tuple[str, str], dict[str, Any]] = {}
    for source in (path_item.get("parameters"), operation.get("parameters")):
        for raw in source or []:
            param = resolver.resolve(raw)
            if isinstance(param, dict) and param.get("name"):
                merged[(str(param["name"]), str(param.get("in")))] = param
    return list(merged.values())


def parse(content: Any, workspace_id: str) -> list[TreeNode]:
    text = content if isinstance(content, str) else dumps(content)
    document = load_document(text)
    resolver = _Resolver(document)
    is_v3 = "openapi" in document
    base_url = _base_url(document)

    info = document.get("info") if isinstance(document.get("info"), dict) else {}
    root = make_folder(
        str(info.get("title") or "OpenAPI"),
        workspace_id=workspace_id,
        description=str(info.get("description") or "") or None,
    )

    folders: dict[str, TreeNode] = {}
    for tag in document.get("tags") or []:
        if isinstance(tag, dict) and tag.get("name"):
            folders[str(tag["name"])] = make_folder(
                str(tag["name"]),
                workspace_id=workspace_id,
                description=str(tag.get("description") or "") or None,
            )
    used_tags: list[str] = []
    loose: list[TreeNode] = []

    for path, path_item in (document.get("paths") or {}).items():
        path_item = resolver.resolve(path_item)
        if not isinstance(path_item, dict):
            continue
        for method in _METHODS:
            operation = path_item.get(method)
            if not isinstance(operation, dict):
                continue
            params = _merged_parameters(path_item, operation, resolver)
            headers = [pair(p["name"], _param_value(p, resolver)) for p in params if p.get("in") == "header"]
            query = [pair(p["name"], _param_value(p, resolver)) for p in params if p.get("in") == "query"]
            body = _body_v3(operation, resolver) if is_v3 else _body_v2(operation, params, document, resolver)
            if body and body.get("mimeType") and not any(h["name"].lower() == "content-type" for h in headers):
                headers.append(pair("Content-Type", body["mimeType"]))
            request = make_request(
                str(operation.get("summary") or operation.get("operationId") or f"{method.upper()} {path}"),
                workspace_id=workspace_id,
                method=method,
                url=f"{base_url}{path}",
                body=body,
                headers=headers,
                parameters=query,
                description=str(operation.get("description") or "") or None,
            )
            tags = operation.get("tags")
            if isinstance(tags, list) and tags:
                tag = str(tags[0])
                folder = folders.setdefault(tag, make_folder(tag, workspace_id=workspace_id))
                folder["children"].append(request)
                if tag not in used_tags:
                    used_tags.append(tag)
            else:
                loose.append(request)

    declared = [name for name in folders if name in used_tags]
    root["children"] = [folders[name] for name in declared] + loose
    return [root]


__all__ = ["load_document", "looks_like", "parse"]
