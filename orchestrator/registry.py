"""
Step Registry

Holds the ordered list of named deployment steps and resolves a run
request into the subset to execute.

Supports:
- Registration in a fixed declaration order
- Tag-based selection (a step runs when any of its tags is requested)
- Run modes as an explicit enum over the known tags
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Optional, TYPE_CHECKING, Union

if TYPE_CHECKING:
    from core.schemas.artifacts import Artifact
    from core.schemas.network import EnvironmentConfig
    from orchestrator.artifacts.store import ArtifactStore
    from orchestrator.context import StepContext


logger = logging.getLogger(__name__)


class RunMode(str, Enum):
    """
    Requested run modes.

    Values are the step tags verbatim; ``fundlink`` and ``fundLink`` are
    distinct tags selecting different steps.
    """
    ALL = "all"
    MOCKS = "mocks"
    MOCK_PXP = "mockpxp"
    PXP_ONLY = "pxponly"
    FUNDLINK = "fundlink"
    FUND_LINK = "fundLink"
    FUND_ONLY = "fundOnly"
    CREATE_ONLY = "createonly"


StepAction = Callable[
    [Optional["EnvironmentConfig"], "ArtifactStore", "StepContext"],
    Optional[list["Artifact"]],
]


@dataclass(frozen=True)
class Step:
    """
    Immutable definition of one pipeline step.

    ``requires`` names artifacts that must exist on the network before
    the action runs; ``env_fields`` names EnvironmentConfig fields the
    action reads.
    """
    name: str
    tags: frozenset[str]
    action: StepAction
    requires: frozenset[str] = frozenset()
    env_fields: frozenset[str] = frozenset()
    local_only: bool = False
    description: str = ""

    def matches(self, tags: set[str]) -> bool:
        return not self.tags.isdisjoint(tags)


def _normalize_tags(requested: Iterable[Union[RunMode, str]]) -> set[str]:
    return {t.value if isinstance(t, RunMode) else str(t) for t in requested}


class StepRegistry:
    """
    Ordered registry of pipeline steps.

    Steps are emitted in declaration order; callers declare them in an
    order consistent with their ``requires`` sets.

    Usage:
        registry = StepRegistry()
        registry.register(
            "mocks",
            deploy_mocks,
            tags={"all", "mocks"},
            local_only=True,
        )
        steps = registry.select({RunMode.ALL})
    """

    def __init__(self) -> None:
        self._steps: list[Step] = []
        self._by_name: dict[str, Step] = {}

    def register(
        self,
        name: str,
        action: StepAction,
        *,
        tags: Iterable[Union[RunMode, str]],
        requires: Optional[Iterable[str]] = None,
        env_fields: Optional[Iterable[str]] = None,
        local_only: bool = False,
        description: str = "",
    ) -> Step:
        """
        Register a step at the end of the declaration order.

        Raises:
            ValueError: If a step with the same name is already registered
        """
        if name in self._by_name:
            raise ValueError(f"Step already registered: {name}")

        step = Step(
            name=name,
            tags=frozenset(_normalize_tags(tags)),
            action=action,
            requires=frozenset(requires or ()),
            env_fields=frozenset(env_fields or ()),
            local_only=local_only,
            description=description,
        )
        self._steps.append(step)
        self._by_name[name] = step
        return step

    def get(self, name: str) -> Optional[Step]:
        return self._by_name.get(name)

    @property
    def steps(self) -> list[Step]:
        return list(self._steps)

    @property
    def known_tags(self) -> set[str]:
        return set().union(*(s.tags for s in self._steps)) if self._steps else set()

    def select(self, requested: Iterable[Union[RunMode, str]]) -> list[Step]:
        """
        Steps whose tags intersect the requested tags, in declaration order.

        Selection is pure: identical input always yields the same sequence.
        """
        tags = _normalize_tags(requested)
        unknown = tags - self.known_tags
        if unknown:
            logger.warning("No step is tagged %s", ", ".join(sorted(unknown)))
        return [s for s in self._steps if s.matches(tags)]

    def __len__(self) -> int:
        return len(self._steps)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name
