"""Restload: auto-load API collections and environments into a workspace.

Foreign exports (native, Postman v1/v2, Insomnia, OpenAPI/Swagger) are
normalized into one canonical collection tree, given fresh ids and merged
into workspace state at activation time.

Example:
    from restload import AutoLoadSettings, MemoryWorkspaceStore, Workspace, auto_load

    workspace = Workspace(id="ws-1")
    result = await auto_load(
        workspace,
        MemoryWorkspaceStore(workspace),
        settings=AutoLoadSettings(host="desktop", default_import_type="Postman"),
    )
    print(result.collections_loaded, result.environments_loaded)
"""

from .autoload import auto_load, process_import_file, should_skip_auto_load
from .environments import merge_by_key
from .importers import normalize, remap, remap_plugins
from .models import AutoLoadResult, ImportBundle, RawFile
from .settings import AutoLoadSettings, load_settings
from .workspace import MemoryWorkspaceStore, Workspace

__all__ = [
    "AutoLoadResult",
    "AutoLoadSettings",
    "ImportBundle",
    "MemoryWorkspaceStore",
    "RawFile",
    "Workspace",
    "auto_load",
    "load_settings",
    "merge_by_key",
    "normalize",
    "process_import_file",
    "remap",
    "remap_plugins",
    "should_skip_auto_load",
]
