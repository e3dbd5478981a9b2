"""
Run Context

Provides dependency injection for step actions, containing:
- Network context
- Chain client
- Runtime configuration
- Progress reporter
- Clock (can be manual for deterministic tests)
- Random source for local oracle simulation

Steps receive context rather than reaching for ambient globals, so the
same step runs unchanged against the dev chain and a live client.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Protocol, TYPE_CHECKING

from core.chain.transactions import transact
from core.schemas.errors import ConfigurationException

if TYPE_CHECKING:
    from core.chain.client import ChainClient
    from core.config import RuntimeConfig
    from core.schemas.chain import Transaction, TxReceipt
    from core.schemas.network import NetworkContext
    from orchestrator.progress import ProgressReporter


logger = logging.getLogger(__name__)


class Clock(Protocol):
    """
    Protocol for time source and blocking waits.

    Can be real time or manual for deterministic testing.
    """

    def now(self) -> datetime:
        """Get current UTC time."""
        ...

    def monotonic(self) -> float:
        """Seconds on a monotonic scale, for measuring waits."""
        ...

    def sleep(self, seconds: float) -> None:
        """Block for ``seconds``."""
        ...


class RealClock:
    """Real-time clock implementation."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


class ManualClock:
    """
    Manual clock for deterministic testing.

    ``sleep`` advances time instantly and runs any registered callbacks,
    which lets tests simulate work happening while the pipeline waits.
    """

    def __init__(self, start: Optional[datetime] = None) -> None:
        self._start = start or datetime(2026, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
        self._elapsed = 0.0
        self.sleeps: list[float] = []
        self._on_sleep: list[Any] = []

    def now(self) -> datetime:
        return self._start + timedelta(seconds=self._elapsed)

    def monotonic(self) -> float:
        return self._elapsed

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self._elapsed += max(seconds, 0.0)
        for callback in list(self._on_sleep):
            callback(self._elapsed)

    def on_sleep(self, callback: Any) -> None:
        """Register ``callback(elapsed_seconds)`` to run after every sleep."""
        self._on_sleep.append(callback)

    @property
    def total_slept(self) -> float:
        return sum(self.sleeps)


@dataclass
class StepContext:
    """
    Everything a step action may touch besides the artifact store.

    Threaded explicitly through every component call.
    """
    network: "NetworkContext"
    client: "ChainClient"
    config: "RuntimeConfig"
    reporter: "ProgressReporter"
    clock: Clock = field(default_factory=RealClock)
    rng: random.Random = field(default_factory=random.Random)
    step: str = ""
    _deployer: Optional[str] = field(default=None, repr=False)

    @property
    def deployer(self) -> str:
        """Named account 0 of the client."""
        if self._deployer is None:
            accounts = self.client.accounts()
            if not accounts:
                raise ConfigurationException(
                    f"Chain client for {self.network.name} exposes no accounts"
                )
            self._deployer = accounts[0]
        return self._deployer

    def transact(self, tx: "Transaction") -> "TxReceipt":
        """Submit and wait for the configured confirmation depth."""
        return transact(
            self.client,
            tx,
            confirmations=self.config.chain.confirmations,
            timeout_s=self.config.chain.confirmation_timeout_s,
        )

    def for_step(self, step: str) -> "StepContext":
        self.step = step
        return self
