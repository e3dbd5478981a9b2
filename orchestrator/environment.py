"""
Environment Resolver

Turns a NetworkContext into the EnvironmentConfig a step needs. Local
networks take dependency addresses from mock artifacts deployed earlier
in the run; live networks take them from the static network table.
Resolution is a pure lookup.
"""

from __future__ import annotations

import logging
from typing import Iterable

from core.config import NetworkEntry, NetworkTable
from core.schemas.errors import (
    MissingArtifactException,
    MissingConfigFieldException,
    UnknownNetworkException,
)
from core.schemas.network import EnvironmentConfig, NetworkContext

from orchestrator.artifacts.store import ArtifactStore


logger = logging.getLogger(__name__)


# Address field -> (mock artifact name on local networks, static table attribute)
ADDRESS_SOURCES: dict[str, tuple[str, str]] = {
    "funding_token_address": ("LinkToken", "link_token"),
    "oracle_service_address": ("VRFCoordinatorMock", "vrf_coordinator"),
}

ENVIRONMENT_FIELDS = frozenset(EnvironmentConfig.model_fields) - {"network_id"}


class EnvironmentResolver:
    """
    Resolves per-network environment parameters.

    Usage:
        resolver = EnvironmentResolver(config.networks)
        env = resolver.resolve(network, store, required={"funding_token_address"})
    """

    def __init__(self, table: NetworkTable) -> None:
        self.table = table

    def entry_for(self, network: NetworkContext) -> NetworkEntry:
        """
        Static table entry for a network.

        Local networks without an entry use the default entry.

        Raises:
            UnknownNetworkException: For a live network with no entry.
        """
        entry = self.table.get(network.id)
        if entry is not None:
            return entry
        if network.is_local:
            return self.table.default
        raise UnknownNetworkException(network.id, details={"name": network.name})

    def resolve(
        self,
        network: NetworkContext,
        store: ArtifactStore,
        required: Iterable[str] = (),
    ) -> EnvironmentConfig:
        """
        Resolve the environment for one step.

        Args:
            network: Target network
            store: Artifact store holding local mock deployments
            required: EnvironmentConfig fields the step cannot run without

        Returns:
            EnvironmentConfig with every required field set

        Raises:
            UnknownNetworkException: Live network missing from the table
            MissingArtifactException: Local mock not deployed yet
            MissingConfigFieldException: Required field resolved to nothing
        """
        required = _checked_fields(required)
        values = self._static_values(network)

        if network.is_local:
            for field_name, (artifact_name, _) in ADDRESS_SOURCES.items():
                artifact = store.get(network.id, artifact_name)
                if artifact is None:
                    if field_name in required:
                        raise MissingArtifactException(artifact_name, network.id)
                    continue
                values[field_name] = artifact.address

        env = EnvironmentConfig(network_id=network.id, **values)
        env.require(*sorted(required))
        logger.debug("Resolved environment for %s: %s", network.name, env)
        return env

    def check_static(self, network: NetworkContext, required: Iterable[str] = ()) -> None:
        """
        Check the required fields that come from the static table.

        Runs before any step so that a table gap aborts the run before a
        transaction is sent. Mock addresses on local networks only exist
        once the mocks step has run and are left to resolve().

        Raises:
            UnknownNetworkException: Live network missing from the table
            MissingConfigFieldException: Required table field is unset
        """
        required = _checked_fields(required)
        values = self._static_values(network)
        for field_name in sorted(required):
            if network.is_local and field_name in ADDRESS_SOURCES:
                continue
            if values.get(field_name) is None:
                raise MissingConfigFieldException(field_name, network.id)

    def _static_values(self, network: NetworkContext) -> dict[str, object]:
        entry = self.entry_for(network)
        values: dict[str, object] = {
            "callback_key": entry.key_hash,
            "request_fee": entry.fee,
            "fund_amount": self.table.fund_amount_for(network.id),
        }
        if not network.is_local:
            for field_name, (_, table_attr) in ADDRESS_SOURCES.items():
                values[field_name] = getattr(entry, table_attr)
        return values


def _checked_fields(required: Iterable[str]) -> set[str]:
    required = set(required)
    unknown = required - ENVIRONMENT_FIELDS
    if unknown:
        raise ValueError(f"Unknown environment fields: {sorted(unknown)}")
    return required
