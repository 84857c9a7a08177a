"""Model module - Handles, registry and persisted artifacts."""

from tabreg_core.model.handle import ModelHandle
from tabreg_core.model.registry import ModelHandleRegistry, get_default_registry
from tabreg_core.model.artifact import ModelArtifact, remove_stale_files

__all__ = [
    "ModelHandle",
    "ModelHandleRegistry",
    "get_default_registry",
    "ModelArtifact",
    "remove_stale_files",
]
