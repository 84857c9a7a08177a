"""TabReg Model Artifact - Persisted weights and manifest.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

On-disk layout for a model ``name`` in ``directory``::

    {directory}/{name}-{epoch:04d}.params   weights
    {directory}/{name}.json                 manifest
"""

from __future__ import annotations

import logging
import re
import warnings
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from tabreg_core.exceptions import CleanupWarning, ReconstructionError
from tabreg_core.utils.hashing import compute_hash, verify_file_hash
from tabreg_core.utils.serialization import JSONSerializer

logger = logging.getLogger(__name__)

PARAMS_SUFFIX = ".params"
MANIFEST_SUFFIX = ".json"

_serializer = JSONSerializer(indent=2)


def params_filename(name: str, epoch: int) -> str:
    return f"{name}-{epoch:04d}{PARAMS_SUFFIX}"


def manifest_path(directory: Union[str, Path], name: str) -> Path:
    return Path(directory) / f"{name}{MANIFEST_SUFFIX}"


def params_pattern(name: str) -> "re.Pattern[str]":
    """Pattern matching weights files of exactly this model name."""
    return re.compile(rf"^{re.escape(name)}-([0-9]+){re.escape(PARAMS_SUFFIX)}$")


def find_params_files(directory: Union[str, Path], name: str) -> List[Path]:
    """Weights files for name, sorted by epoch."""
    directory = Path(directory)
    if not directory.is_dir():
        return []

    pattern = params_pattern(name)
    found = []
    for path in directory.iterdir():
        match = pattern.match(path.name)
        if match and path.is_file():
            found.append((int(match.group(1)), path))
    return [p for _, p in sorted(found)]


def latest_params_file(directory: Union[str, Path], name: str) -> Optional[Path]:
    files = find_params_files(directory, name)
    return files[-1] if files else None


def remove_stale_files(directory: Union[str, Path], name: str) -> List[Path]:
    """Delete left-over weights files of a previous run under name.

    Deletion failures are reported as CleanupWarning and skipped.

    Returns:
        Paths that were removed
    """
    removed = []
    for path in find_params_files(directory, name):
        try:
            path.unlink()
        except OSError as e:
            msg = f"Failed to remove stale model file {path}: {e}"
            logger.warning(msg)
            warnings.warn(msg, CleanupWarning, stacklevel=2)
            continue
        logger.debug(f"Removed stale model file {path}")
        removed.append(path)
    return removed


@dataclass
class ModelArtifact:
    """A persisted model: weights file plus everything needed to reload it.

    Attributes:
        name: Model name
        directory: Storage directory
        epoch: Epoch the weights were saved at
        checksum: sha256 of the weights file
        descriptor: Serialized adaptation descriptor
        header: Serialized zero-row schema
        topology: Serialized network topology
        config: Serialized regressor configuration
        metrics: Final training/validation metrics
        created_at: Creation time
    """

    name: str
    directory: Path
    epoch: int
    checksum: str
    descriptor: Dict[str, Any]
    header: Dict[str, Any]
    topology: Dict[str, Any]
    config: Dict[str, Any] = field(default_factory=dict)
    metrics: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def params_path(self) -> Path:
        return Path(self.directory) / params_filename(self.name, self.epoch)

    @property
    def manifest_path(self) -> Path:
        return manifest_path(self.directory, self.name)

    @property
    def descriptor_hash(self) -> str:
        return compute_hash(self.descriptor)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "epoch": self.epoch,
            "params_file": self.params_path.name,
            "checksum": self.checksum,
            "descriptor": self.descriptor,
            "descriptor_hash": self.descriptor_hash,
            "header": self.header,
            "topology": self.topology,
            "config": self.config,
            "metrics": self.metrics,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], directory: Union[str, Path]) -> "ModelArtifact":
        try:
            artifact = cls(
                name=data["name"],
                directory=Path(directory),
                epoch=int(data["epoch"]),
                checksum=data["checksum"],
                descriptor=data["descriptor"],
                header=data["header"],
                topology=data["topology"],
                config=data.get("config", {}),
                metrics=data.get("metrics", {}),
                created_at=datetime.fromisoformat(data["created_at"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ReconstructionError(f"Malformed model manifest: {e}") from e

        expected = data.get("descriptor_hash")
        if expected is not None and expected != artifact.descriptor_hash:
            raise ReconstructionError(f"Descriptor of model {artifact.name!r} does not match its hash")
        return artifact

    def write_manifest(self) -> Path:
        """Write the manifest next to the weights file."""
        path = _serializer.to_file(self.to_dict(), self.manifest_path)
        logger.debug(f"Wrote manifest {path}")
        return path

    @classmethod
    def exists(cls, directory: Union[str, Path], name: str) -> bool:
        return manifest_path(directory, name).is_file()

    @classmethod
    def read(cls, directory: Union[str, Path], name: str) -> "ModelArtifact":
        """Read the manifest of a persisted model.

        Raises:
            FileNotFoundError: If no manifest exists
            ReconstructionError: If the manifest is malformed
        """
        path = manifest_path(directory, name)
        if not path.is_file():
            raise FileNotFoundError(f"No model manifest at {path}")
        try:
            data = _serializer.from_file(path)
        except ValueError as e:
            raise ReconstructionError(f"Unreadable model manifest {path}: {e}") from e
        return cls.from_dict(data, directory)

    def verify(self) -> None:
        """Check the weights file is present and unchanged.

        Raises:
            ReconstructionError: If the file is missing or its checksum differs
        """
        path = self.params_path
        if not path.is_file():
            latest = latest_params_file(self.directory, self.name)
            found = f", latest on disk is {latest.name}" if latest is not None else ""
            raise ReconstructionError(f"Weights file missing: {path}{found}")
        if not verify_file_hash(path, self.checksum):
            raise ReconstructionError(f"Checksum mismatch for weights file {path}")

    def __repr__(self) -> str:
        return f"ModelArtifact(name={self.name!r}, epoch={self.epoch}, directory={str(self.directory)!r})"


__all__ = [
    "ModelArtifact",
    "params_filename",
    "params_pattern",
    "find_params_files",
    "latest_params_file",
    "remove_stale_files",
    "manifest_path",
]
