"""Auto-load orchestrator: config -> sources -> normalize -> remap -> merge -> commit.

One sequential run per workspace activation. Source-local problems (missing
file, unknown format, malformed document) are logged and skipped; only a
failed config resolution or a rejected final commit fails the run. The
outcome is always returned as an ``AutoLoadResult``.
"""

from __future__ import annotations

from typing import Any

from .environments import apply_policy, coerce_environments
from .errors import CommitFailure, MalformedDocument, RestloadError
from .importers.ids import remap, remap_plugins
from .importers.normalizer import AUTO, OPENAPI, canonical_format, normalize
from .lib.json import try_loads
from .lib.log import get_logger
from .models import AutoLoadResult, ImportBundle, Plugin, RawFile, TreeNode
from .readers import SourceReader
from .resolvers import SourceResolver, build_resolver
from .settings import AutoLoadSettings
from .workspace import SET_COLLECTION_TREE, UPDATE_ENVIRONMENTS, Workspace, WorkspaceStore

logger = get_logger(__name__)


def should_skip_auto_load(workspace: Workspace, settings: AutoLoadSettings) -> bool:
    if not settings.enabled:
        return True
    if settings.skip_on_existing_data and workspace.has_collections:
        logger.info("Skipping auto-load: workspace already has collections", workspace_id=workspace.id)
        return True
    return False


def _document_content(raw: RawFile, import_type: str) -> Any:
    """Text sources that hold JSON are parsed unless the importer wants text."""
    if raw.kind == "text" and isinstance(raw.content, str):
        try:
            resolved = canonical_format(import_type)
        except RestloadError:
            return raw.content
        if resolved != OPENAPI:
            ok, value = try_loads(raw.content)
            if ok:
                return value
            if resolved != AUTO:
                raise MalformedDocument(f"{raw.name} is not valid JSON")
    return raw.content


def process_import_file(raw: RawFile, import_type: str, workspace_id: str) -> ImportBundle:
    """Normalize one source and give its nodes workspace-safe ids."""
    bundle = normalize(_document_content(raw, import_type), import_type, workspace_id)
    if bundle.tree:
        mapping = remap(bundle.tree)
        remap_plugins(bundle.plugins, mapping)
    return bundle


class AutoLoader:
    def __init__(
        self,
        workspace: Workspace,
        store: WorkspaceStore,
        settings: AutoLoadSettings,
        resolver: SourceResolver,
    ) -> None:
        self.workspace = workspace
        self.store = store
        self.settings = settings
        self.resolver = resolver
        self.collections_loaded = 0
        self.environments_loaded = 0
        self.tree: list[TreeNode] = []
        self.plugins: list[Plugin] = []

    def _commit_environments(self, incoming: list[dict[str, Any]]) -> None:
        self.workspace.environments = apply_policy(
            self.workspace.environments,
            incoming,
            merge=self.settings.merge_environments,
        )
        self.store.commit(
            UPDATE_ENVIRONMENTS,
            {"workspaceId": self.workspace.id, "environments": self.workspace.environments},
        )
        self.environments_loaded += len(incoming)

    def ingest_collection(self, raw: RawFile) -> None:
        bundle = process_import_file(raw, self.settings.default_import_type, self.workspace.id)
        if bundle.is_empty:
            logger.warning("Collection source contributed nothing", source=raw.name)
            return
        environments = coerce_environments(bundle.environments) if bundle.environments else []
        self.tree.extend(bundle.tree)
        self.plugins.extend(bundle.plugins)
        if environments:
            self._commit_environments(environments)
        self.collections_loaded += 1
        logger.info("Loaded collection", source=raw.name, items=len(bundle.tree), plugins=len(bundle.plugins))

    def ingest_environments(self, raw: RawFile) -> None:
        content = _document_content(raw, "native")
        environments = coerce_environments(content)
        self._commit_environments(environments)
        logger.info("Loaded environments", source=raw.name, count=len(environments))

    async def commit(self) -> None:
        if not self.tree:
            return
        reply = await self.store.dispatch(
            SET_COLLECTION_TREE,
            {"collectionTree": self.tree, "parentId": None, "plugins": self.plugins},
        )
        error = reply.get("error") if isinstance(reply, dict) else None
        if error:
            raise CommitFailure(str(error))
        logger.info(
            "Auto-loaded collections",
            files=self.collections_loaded,
            items=len(self.tree),
            plugins=len(self.plugins),
        )

    async def run(self) -> AutoLoadResult:
        sources = await self.resolver.resolve()

        for raw in sources.collections:
            try:
                self.ingest_collection(raw)
            except MalformedDocument as exc:
                logger.error("Malformed collection source, skipped", source=raw.name, error=str(exc))
            except Exception as exc:
                logger.error("Failed to load collection", source=raw.name, error=str(exc), exc_info=True)

        for raw in sources.environments:
            try:
                self.ingest_environments(raw)
            except MalformedDocument as exc:
                logger.error("Malformed environment source, skipped", source=raw.name, error=str(exc))
            except Exception as exc:
                logger.error("Failed to load environments", source=raw.name, error=str(exc), exc_info=True)

        await self.commit()
        return AutoLoadResult(
            success=True,
            collections_loaded=self.collections_loaded,
            environments_loaded=self.environments_loaded,
        )


async def auto_load(
    workspace: Workspace,
    store: WorkspaceStore,
    *,
    settings: AutoLoadSettings | None = None,
    resolver: SourceResolver | None = None,
    reader: SourceReader | None = None,
) -> AutoLoadResult:
    """Populate ``workspace`` from the configured sources.

    Never raises: every terminal outcome, including readiness timeouts and
    store rejections, is reported through the returned result.
    """
    settings = settings or AutoLoadSettings()
    if should_skip_auto_load(workspace, settings):
        return AutoLoadResult(success=True)

    try:
        if resolver is None:
            resolver = build_resolver(settings, reader=reader)
        return await AutoLoader(workspace, store, settings, resolver).run()
    except RestloadError as exc:
        logger.error("Auto-loading failed", workspace_id=workspace.id, error=str(exc))
        return AutoLoadResult.failed(str(exc))
    except Exception as exc:
        logger.error("Auto-loading failed", workspace_id=workspace.id, error=str(exc), exc_info=True)
        return AutoLoadResult.failed(str(exc) or type(exc).__name__)


__all__ = ["AutoLoader", "auto_load", "process_import_file", "should_skip_auto_load"]
