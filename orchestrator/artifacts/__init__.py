"""
Artifact Store & Persistence

Provides the in-memory artifact store and its JSON-file backed variant.
"""

from orchestrator.artifacts.store import ArtifactStore

from orchestrator.artifacts.io import (
    ARTIFACT_SUFFIX,
    ArtifactCorruptError,
    ArtifactIOError,
    JsonArtifactStore,
    artifact_path,
    compute_sha256,
    dump_artifact,
    load_artifact,
    load_artifacts_dir,
    save_artifact,
)

__all__ = [
    # Store
    "ArtifactStore",
    "JsonArtifactStore",
    # IO
    "ARTIFACT_SUFFIX",
    "ArtifactCorruptError",
    "ArtifactIOError",
    "artifact_path",
    "compute_sha256",
    "dump_artifact",
    "load_artifact",
    "load_artifacts_dir",
    "save_artifact",
]
