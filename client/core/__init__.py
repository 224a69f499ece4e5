from .network import UDPClient
from .session import ClientSession, ConnectionState, ConnectionStatus

__all__ = ["UDPClient", "ClientSession", "ConnectionState", "ConnectionStatus"]
