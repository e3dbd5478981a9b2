"""
Artifact Store

Records deployment artifacts keyed by (network_id, name). The store is
the only mutable state shared between steps; writes are serialized so
the at-most-one-artifact-per-key invariant holds even if steps are ever
run from several threads.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterator, Optional

from core.schemas.artifacts import Artifact
from core.schemas.errors import MissingArtifactException


logger = logging.getLogger(__name__)


class ArtifactStore:
    """
    In-memory artifact store.

    Usage:
        store = ArtifactStore()
        store.save(Artifact(name="LinkToken", address="0x...", network="31337"))
        link = store.require("31337", "LinkToken")
    """

    def __init__(self) -> None:
        self._artifacts: dict[tuple[str, str], Artifact] = {}
        self._lock = threading.Lock()

    def get(self, network_id: str, name: str) -> Optional[Artifact]:
        return self._artifacts.get((network_id, name))

    def require(self, network_id: str, name: str) -> Artifact:
        """
        Get an artifact that must exist.

        Raises:
            MissingArtifactException: If no artifact is recorded under the key.
        """
        artifact = self.get(network_id, name)
        if artifact is None:
            raise MissingArtifactException(name, network_id)
        return artifact

    def has(self, network_id: str, name: str) -> bool:
        return (network_id, name) in self._artifacts

    def missing(self, network_id: str, names: set[str] | list[str]) -> list[str]:
        """Names from ``names`` with no artifact on the network, sorted."""
        return sorted(n for n in names if not self.has(network_id, n))

    def save(self, artifact: Artifact) -> Artifact:
        """Record an artifact, replacing any previous one under its key."""
        with self._lock:
            previous = self._artifacts.get(artifact.key)
            self._artifacts[artifact.key] = artifact
            self._persist(artifact)
        if previous is not None and previous.address != artifact.address:
            logger.info(
                "Replaced artifact %s on %s: %s -> %s",
                artifact.name, artifact.network, previous.address, artifact.address,
            )
        return artifact

    def delete(self, network_id: str, name: str) -> bool:
        with self._lock:
            removed = self._artifacts.pop((network_id, name), None)
            if removed is not None:
                self._remove(removed)
        return removed is not None

    def all_for(self, network_id: str) -> list[Artifact]:
        return sorted(
            (a for (net, _), a in self._artifacts.items() if net == network_id),
            key=lambda a: a.name,
        )

    def names_for(self, network_id: str) -> list[str]:
        return [a.name for a in self.all_for(network_id)]

    def __iter__(self) -> Iterator[Artifact]:
        return iter(list(self._artifacts.values()))

    def __len__(self) -> int:
        return len(self._artifacts)

    # Persistence hooks, called with the write lock held

    def _persist(self, artifact: Artifact) -> None:
        pass

    def _remove(self, artifact: Artifact) -> None:
        pass
