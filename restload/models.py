"""Core data shapes shared by the importers, the orchestrator and the cache service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .lib.json import dumps

# Collection tree nodes and plugins stay plain JSON mappings: they carry
# format-specific request fields and are handed to the store as-is.
TreeNode = dict[str, Any]
Plugin = dict[str, Any]

FileKind = Literal["structured", "text"]


class RawFile(BaseModel):
    """Contents of one import source as returned by a reader."""

    name: str
    content: Any
    kind: FileKind = "structured"

    @property
    def text(self) -> str:
        if isinstance(self.content, str):
            return self.content
        return dumps(self.content)


class Environment(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = Field(min_length=1)
    environment: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("environment", "variables"),
    )
    color: str | None = None


class ImportSource(BaseModel):
    path: str = Field(min_length=1)


class AutoLoadConfig(BaseModel):
    collections: list[ImportSource] = Field(default_factory=list)
    environments: list[ImportSource] = Field(default_factory=list)


class CacheEntry(BaseModel):
    name: str
    blob: str
    kind: FileKind = "structured"


class CacheManifest(BaseModel):
    collections: list[CacheEntry] = Field(default_factory=list)
    environments: list[CacheEntry] = Field(default_factory=list)
    timestamp: str
    generation: str


class CachedObjects(BaseModel):
    collections: list[RawFile] = Field(default_factory=list)
    environments: list[RawFile] = Field(default_factory=list)


class StatusPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    initialized: bool
    has_collections: bool = Field(default=False, alias="hasCollections")
    has_environments: bool = Field(default=False, alias="hasEnvironments")


@dataclass
class ImportBundle:
    """Normalizer output for one source document."""

    tree: list[TreeNode] = field(default_factory=list)
    plugins: list[Plugin] = field(default_factory=list)
    environments: list[dict[str, Any]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.tree and not self.plugins and not self.environments


@dataclass
class ResolvedSources:
    collections: list[RawFile] = field(default_factory=list)
    environments: list[RawFile] = field(default_factory=list)


@dataclass
class AutoLoadResult:
    success: bool
    collections_loaded: int = 0
    environments_loaded: int = 0
    error: str | None = None

    @classmethod
    def failed(cls, error: str) -> AutoLoadResult:
        return cls(success=False, error=error)

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "collectionsLoaded": self.collections_loaded,
            "environmentsLoaded": self.environments_loaded,
        }
        if self.error is not None:
            payload["error"] = self.error
        return payload


__all__ = [
    "AutoLoadConfig",
    "AutoLoadResult",
    "CacheEntry",
    "CacheManifest",
    "CachedObjects",
    "Environment",
    "FileKind",
    "ImportBundle",
    "ImportSource",
    "Plugin",
    "RawFile",
    "ResolvedSources",
    "StatusPayload",
    "TreeNode",
]
