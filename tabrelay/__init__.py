"""Relay server-issued extraction requests to a live page and return correlated results."""

from .runner import run_relay
from .state import AppSettings, ConnectOutcome, ConnectionEvent, ConnectionState
from .errors import SandboxError, FrameParseError, RelayConnectionError, TargetResolutionError
from .routing import Sandbox, RequestRouter, TargetLocator, TargetCandidate
from .protocol import MessageDispatcher, ExtractionRequest
from .connection import ConnectionManager
from .runtime import load_settings, build_runtime_deps

__all__ = [
    "AppSettings",
    "ConnectOutcome",
    "ConnectionEvent",
    "ConnectionManager",
    "ConnectionState",
    "ExtractionRequest",
    "FrameParseError",
    "MessageDispatcher",
    "RelayConnectionError",
    "RequestRouter",
    "Sandbox",
    "SandboxError",
    "TargetCandidate",
    "TargetLocator",
    "TargetResolutionError",
    "build_runtime_deps",
    "load_settings",
    "run_relay",
]
