"""Parties that drive the game core: offline owner, relay host and relay client."""

from .client import ClientSession
from .host import HostSession
from .offline import OfflineTable

__all__ = ["ClientSession", "HostSession", "OfflineTable"]
