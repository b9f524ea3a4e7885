"""Room-scoped message relay shared by hosts and clients."""

from .server import RelayServer

__all__ = ["RelayServer"]
