"""
Artifact Persistence & IO
File: io.py

Purpose: Save and load deployment artifacts to/from disk so a pipeline
re-run can reuse what an earlier run deployed.

Layout:
    <deployments_dir>/<network_id>/<name>.json
"""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from core.schemas.artifacts import Artifact
from core.schemas.canonical import dumps_canonical, loads_canonical

from orchestrator.artifacts.store import ArtifactStore


logger = logging.getLogger(__name__)


ARTIFACT_SUFFIX = ".json"


class ArtifactIOError(Exception):
    """Error during artifact IO operations."""
    pass


class ArtifactCorruptError(ArtifactIOError):
    """A persisted artifact file could not be parsed."""
    def __init__(self, path: Path, reason: str):
        self.path = path
        super().__init__(f"Corrupt artifact file {path}: {reason}")


def compute_sha256(data: bytes) -> str:
    """Compute SHA-256 hex digest of data."""
    return hashlib.sha256(data).hexdigest()


def artifact_path(root: str | Path, network_id: str, name: str) -> Path:
    return Path(root) / network_id / f"{name}{ARTIFACT_SUFFIX}"


def dump_artifact(artifact: Artifact) -> str:
    """Serialize an artifact to canonical, human-readable JSON."""
    return dumps_canonical(artifact, indent=2) + "\n"


def save_artifact(root: str | Path, artifact: Artifact) -> Path:
    """
    Write one artifact file atomically.

    Args:
        root: Deployments directory
        artifact: Artifact to persist

    Returns:
        Path of the written file
    """
    path = artifact_path(root, artifact.network, artifact.name)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = dump_artifact(artifact).encode("utf-8")

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{artifact.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except OSError:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

    logger.debug("Saved %s (%s)", path, compute_sha256(data)[:12])
    return path


def load_artifact(path: str | Path) -> Artifact:
    """
    Load one artifact file.

    Raises:
        ArtifactCorruptError: If the file is not a valid artifact
    """
    path = Path(path)
    try:
        data = loads_canonical(path.read_text(encoding="utf-8"))
        return Artifact.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise ArtifactCorruptError(path, str(e)) from e


def load_artifacts_dir(root: str | Path) -> list[Artifact]:
    """Load every artifact under a deployments directory."""
    root = Path(root)
    if not root.is_dir():
        return []

    artifacts = []
    for network_dir in sorted(p for p in root.iterdir() if p.is_dir()):
        for file in sorted(network_dir.glob(f"*{ARTIFACT_SUFFIX}")):
            artifact = load_artifact(file)
            if artifact.network != network_dir.name:
                raise ArtifactCorruptError(
                    file, f"network {artifact.network!r} does not match directory"
                )
            artifacts.append(artifact)
    return artifacts


class JsonArtifactStore(ArtifactStore):
    """
    Artifact store persisted as one JSON file per artifact.

    Existing files are loaded on construction, so a new process resumes
    where the previous run stopped.
    """

    def __init__(self, root: str | Path) -> None:
        super().__init__()
        self.root = Path(root)
        for artifact in load_artifacts_dir(self.root):
            self._artifacts[artifact.key] = artifact
        if self._artifacts:
            logger.info("Loaded %d artifact(s) from %s", len(self._artifacts), self.root)

    def _persist(self, artifact: Artifact) -> None:
        save_artifact(self.root, artifact)

    def _remove(self, artifact: Artifact) -> None:
        path = artifact_path(self.root, artifact.network, artifact.name)
        if path.exists():
            path.unlink()
