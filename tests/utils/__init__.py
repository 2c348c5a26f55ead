"""
Test utilities for pdanalytics.
"""

from .async_helpers import wait_for_condition
from .sync_helpers import PEER_URL, ScriptedClient, sync_key

__all__ = [
    "wait_for_condition",
    "PEER_URL",
    "ScriptedClient",
    "sync_key",
]
