"""Export document builders shared across the Restload test suite.

Usage:
    from tests.helpers import postman_v2_doc, write_json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from restload.errors import SourceUnavailable
from restload.models import RawFile
from restload.paths import source_basename


def write_json(path: Path, payload: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def write_config(directory: Path, collections: list[str], environments: list[str] | None = None) -> Path:
    lines = ["collections:"]
    lines += [f"  - {item}" for item in collections]
    lines.append("environments:")
    lines += [f"  - {item}" for item in environments or []]
    path = directory / "collections-envs.yaml"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def native_doc(*, environments: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    return {
        "exportedFrom": "Restload-0.3.0",
        "collection": [
            {"id": "folder-1", "type": "request_group", "name": "Users", "parentId": None, "sortOrder": 1},
            {
                "id": "req-1",
                "type": "request",
                "name": "List users",
                "method": "GET",
                "url": "https://api.example.com/users",
                "parentId": "folder-1",
                "sortOrder": 2,
            },
            {
                "id": "req-2",
                "type": "request",
                "name": "Create user",
                "method": "POST",
                "url": "https://api.example.com/users",
                "parentId": "folder-1",
                "sortOrder": 1,
            },
        ],
        "plugins": [
            {
                "id": "plugin-1",
                "name": "Sign",
                "type": "script",
                "code": {"pre_request": "sign()", "post_request": ""},
                "collectionId": "folder-1",
                "workspaceId": "old-ws",
                "enabled": True,
            }
        ],
        "environments": environments or [],
    }


def postman_v2_doc() -> dict[str, Any]:
    return {
        "info": {
            "_postman_id": "pm-root",
            "name": "Pet Store",
            "schema": "https://schema.getpostman.com/json/collection/v2.1.0/collection.json",
        },
        "variable": [{"key": "baseUrl", "value": "https://pets.example.com"}],
        "item": [
            {
                "name": "Pets",
                "item": [
                    {
                        "id": "pm-req-1",
                        "name": "Get pet",
                        "event": [
                            {"listen": "prerequest", "script": {"exec": ["console.log('pre')"]}},
                            {"listen": "test", "script": {"exec": ["pm.test('ok')", "done()"]}},
                        ],
                        "request": {
                            "method": "GET",
                            "header": [{"key": "Accept", "value": "application/json"}],
                            "url": {
                                "raw": "{{baseUrl}}/pets/1?verbose=true",
                                "query": [{"key": "verbose", "value": "true"}],
                            },
                            "auth": {"type": "bearer", "bearer": [{"key": "token", "value": "secret"}]},
                        },
                    },
                    {
                        "name": "Create pet",
                        "request": {
                            "method": "POST",
                            "url": "{{baseUrl}}/pets",
                            "body": {
                                "mode": "raw",
                                "raw": "{\"name\": \"Rex\"}",
                                "options": {"raw": {"language": "json"}},
                            },
                        },
                    },
                ],
            }
        ],
    }


def postman_v1_doc() -> dict[str, Any]:
    return {
        "id": "pm1-root",
        "name": "Legacy",
        "order": ["r3"],
        "folders": [{"id": "f1", "name": "Accounts", "order": ["r1", "r2"]}],
        "requests": [
            {
                "id": "r1",
                "name": "Login",
                "url": "https://legacy.example.com/login",
                "method": "POST",
                "headers": "Content-Type: application/json\n// X-Debug: 1\n",
                "dataMode": "raw",
                "rawModeData": "{\"user\": \"a\"}",
            },
            {"id": "r2", "name": "Logout", "url": "https://legacy.example.com/logout", "method": "POST"},
            {
                "id": "r3",
                "name": "Health",
                "url": "https://legacy.example.com/health",
                "method": "GET",
                "dataMode": "urlencoded",
                "data": [{"key": "a", "value": "1", "type": "text"}],
            },
        ],
    }


def insomnia_doc() -> dict[str, Any]:
    return {
        "_type": "export",
        "__export_format": 4,
        "resources": [
            {"_id": "wrk_1", "_type": "workspace", "name": "Insomnia WS"},
            {"_id": "env_1", "_type": "environment", "parentId": "wrk_1", "data": {}},
            {
                "_id": "fld_1",
                "_type": "request_group",
                "parentId": "wrk_1",
                "name": "Orders",
                "environment": {"region": "eu"},
                "metaSortKey": -10,
            },
            {
                "_id": "req_2",
                "_type": "request",
                "parentId": "fld_1",
                "name": "Second",
                "method": "DELETE",
                "url": "https://shop.example.com/orders/1",
                "metaSortKey": 20,
            },
            {
                "_id": "req_1",
                "_type": "request",
                "parentId": "fld_1",
                "name": "First",
                "method": "post",
                "url": "https://shop.example.com/orders",
                "body": {"mimeType": "application/json", "text": "{}"},
                "headers": [{"name": "X-Trace", "value": "1", "disabled": True}],
                "authentication": {"type": "basic", "username": "u", "password": "p"},
                "metaSortKey": 10,
            },
            {
                "_id": "ws_1",
                "_type": "websocket_request",
                "parentId": "wrk_1",
                "name": "Feed",
                "url": "wss://shop.example.com/feed",
                "metaSortKey": 5,
            },
        ],
    }


OPENAPI_YAML = """\
openapi: 3.0.3
info:
  title: Inventory API
servers:
  - url: https://{env}.inventory.example.com/v1
    variables:
      env:
        default: prod
tags:
  - name: items
paths:
  /items:
    get:
      tags: [items]
      summary: List items
      parameters:
        - name: limit
          in: query
          schema:
            type: integer
            default: 10
        - name: X-Request-Id
          in: header
          example: abc
    post:
      tags: [items]
      operationId: createItem
      requestBody:
        content:
          application/json:
            schema:
              $ref: '#/components/schemas/Item'
  /health:
    get:
      summary: Health check
components:
  schemas:
    Item:
      type: object
      example:
        name: widget
        qty: 3
"""


def openapi_dict() -> dict[str, Any]:
    return {
        "swagger": "2.0",
        "info": {"title": "Legacy Swagger"},
        "host": "legacy.example.com",
        "basePath": "/api",
        "schemes": ["http"],
        "paths": {
            "/pets/{petId}": {
                "parameters": [{"name": "petId", "in": "path", "required": True, "type": "string"}],
                "get": {"operationId": "getPet"},
                "put": {
                    "summary": "Update pet",
                    "consumes": ["application/json"],
                    "parameters": [
                        {"name": "body", "in": "body", "schema": {"example": {"name": "Rex"}}},
                    ],
                },
            }
        },
    }


class DictReader:
    """In-memory SourceReader.

    ``files`` maps paths to content (strings become text files).
    ``failures`` maps paths to how many fetches fail before one succeeds.
    """

    def __init__(self, files: dict[str, Any], failures: dict[str, int] | None = None) -> None:
        self.files = dict(files)
        self.failures = dict(failures or {})
        self.calls: list[str] = []

    async def fetch(self, path: str) -> RawFile:
        self.calls.append(path)
        remaining = self.failures.get(path, 0)
        if remaining:
            self.failures[path] = remaining - 1
            raise SourceUnavailable(path, "temporarily unavailable")
        if path not in self.files:
            raise SourceUnavailable(path, "not found")
        content = self.files[path]
        kind = "text" if isinstance(content, str) else "structured"
        return RawFile(name=source_basename(path), content=content, kind=kind)

    async def read(self, path: str) -> RawFile | None:
        try:
            return await self.fetch(path)
        except SourceUnavailable:
            return None
