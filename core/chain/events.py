"""
Effect Log Decoding

Looks up events by declared name and named field. Positional indexing
into a receipt's log is never used: the log layout changes whenever a
contract emits an extra event.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from core.schemas.chain import Event
from core.schemas.errors import MalformedEffectLogException


def _same_address(a: str, b: str) -> bool:
    return a.lower() == b.lower()


def find_events(
    events: Iterable[Event],
    name: str,
    address: Optional[str] = None,
) -> list[Event]:
    """All events called ``name``, optionally restricted to one emitter."""
    return [
        e for e in events
        if e.name == name and (address is None or _same_address(e.address, address))
    ]


def find_event(
    events: Iterable[Event],
    name: str,
    address: Optional[str] = None,
) -> Event:
    """
    The last event called ``name`` in the log.

    Raises:
        MalformedEffectLogException: If no such event was emitted.
    """
    matches = find_events(events, name, address)
    if not matches:
        raise MalformedEffectLogException(name)
    return matches[-1]


def event_field(event: Event, field: str) -> Any:
    """
    A named argument of an event.

    Raises:
        MalformedEffectLogException: If the argument is absent or null.
    """
    value = event.args.get(field)
    if value is None:
        raise MalformedEffectLogException(event.name, field)
    return value
