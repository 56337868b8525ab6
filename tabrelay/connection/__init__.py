from .manager import ConnectionManager, TransportFactory
from .heartbeat import HeartbeatTimer

__all__ = ["ConnectionManager", "HeartbeatTimer", "TransportFactory"]
