from .runtime import RuntimeDeps
from .settings import AppSettings, ClientSettings, TargetSettings, ConnectionSettings
from .connection import CloseInfo, ConnectOutcome, ConnectionEvent, ConnectionState, ConnectionStatus

__all__ = [
    "AppSettings",
    "ClientSettings",
    "CloseInfo",
    "ConnectOutcome",
    "ConnectionEvent",
    "ConnectionSettings",
    "ConnectionState",
    "ConnectionStatus",
    "RuntimeDeps",
    "TargetSettings",
]
