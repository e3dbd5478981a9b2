"""
Chain Collaborator Module

Capability protocol, effect-log decoding, submit-and-confirm helper and
the in-process development chain.
"""

from .client import ChainClient, ChainClientFactory, get_client_factory
from .devchain import DevChain, ZERO_ADDRESS
from .events import event_field, find_event, find_events
from .transactions import transact

__all__ = [
    "ChainClient",
    "ChainClientFactory",
    "DevChain",
    "ZERO_ADDRESS",
    "event_field",
    "find_event",
    "find_events",
    "get_client_factory",
    "transact",
]
