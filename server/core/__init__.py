from .connection import ClientContext
from .connection_manager import ConnectionManager
from .router import CommandRouter
from .server import DatagramServer

__all__ = ["ClientContext", "ConnectionManager", "CommandRouter", "DatagramServer"]
