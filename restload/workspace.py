"""Workspace state and the store interface the orchestrator mutates it through."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from .errors import ConfigError
from .importers.ids import flatten_tree
from .lib.log import get_logger
from .models import Plugin, TreeNode

logger = get_logger(__name__)

UPDATE_ENVIRONMENTS = "updateWorkspaceEnvironments"
SET_COLLECTION_TREE = "setCollectionTree"


@dataclass
class Workspace:
    id: str
    name: str = "Workspace"
    collection_tree: list[TreeNode] = field(default_factory=list)
    environments: list[dict[str, Any]] = field(default_factory=list)
    plugins: list[Plugin] = field(default_factory=list)

    @property
    def has_collections(self) -> bool:
        return bool(self.collection_tree)

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "collectionTree": self.collection_tree,
            "environments": self.environments,
            "plugins": self.plugins,
        }

    @classmethod
    def from_dict(cls, raw: Any) -> Workspace:
        if not isinstance(raw, dict) or not isinstance(raw.get("id"), str):
            raise ConfigError("Workspace file must be an object with a string 'id'")
        return cls(
            id=raw["id"],
            name=str(raw.get("name") or "Workspace"),
            collection_tree=list(raw.get("collectionTree") or []),
            environments=list(raw.get("environments") or []),
            plugins=list(raw.get("plugins") or []),
        )


class WorkspaceStore(Protocol):
    def commit(self, action: str, payload: dict[str, Any]) -> None:
        """Synchronous direct state mutation."""
        ...

    async def dispatch(self, action: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Composite operation; the reply carries ``error`` on failure."""
        ...


class MemoryWorkspaceStore:
    """In-process store holding a single workspace.

    ``setCollectionTree`` appends the imported tree under ``parentId`` (or at
    the root) and rejects batches whose ids collide with existing nodes.
    """

    def __init__(self, workspace: Workspace) -> None:
        self.workspace = workspace
        self.actions: list[str] = []

    def commit(self, action: str, payload: dict[str, Any]) -> None:
        self.actions.append(action)
        if action != UPDATE_ENVIRONMENTS:
            raise ValueError(f"Unknown commit action: {action}")
        if payload.get("workspaceId") != self.workspace.id:
            raise ValueError(f"Unknown workspace: {payload.get('workspaceId')}")
        self.workspace.environments = list(payload.get("environments") or [])

    async def dispatch(self, action: str, payload: dict[str, Any]) -> dict[str, Any]:
        self.actions.append(action)
        if action != SET_COLLECTION_TREE:
            return {"error": f"Unknown action: {action}"}

        tree = list(payload.get("collectionTree") or [])
        existing_ids = {node.get("id") for node in flatten_tree(self.workspace.collection_tree)}
        seen: set[Any] = set()
        for node in flatten_tree(tree):
            node_id = node.get("id")
            if node_id in existing_ids or node_id in seen:
                return {"error": f"Duplicate collection item id: {node_id}"}
            seen.add(node_id)

        parent_id = payload.get("parentId")
        if parent_id is None:
            self.workspace.collection_tree.extend(tree)
        else:
            parent = next((n for n in flatten_tree(self.workspace.collection_tree) if n.get("id") == parent_id), None)
            if parent is None or not isinstance(parent.get("children"), list):
                return {"error": f"Parent folder not found: {parent_id}"}
            for node in tree:
                node["parentId"] = parent_id
            parent["children"].extend(tree)
        self.workspace.plugins.extend(payload.get("plugins") or [])
        logger.debug("Imported collection tree", items=len(seen), parent_id=parent_id)
        return {}


def load_workspace(path: Path, *, workspace_id: str | None = None) -> Workspace:
    if not path.exists():
        return Workspace(id=workspace_id or path.stem)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Workspace file {path} is not valid JSON: {exc}") from exc
    return Workspace.from_dict(raw)


def save_workspace(path: Path, workspace: Workspace) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(workspace.as_dict(), indent=2), encoding="utf-8")
    tmp.replace(path)


__all__ = [
    "MemoryWorkspaceStore",
    "SET_COLLECTION_TREE",
    "UPDATE_ENVIRONMENTS",
    "Workspace",
    "WorkspaceStore",
    "load_workspace",
    "save_workspace",
]
