"""Shared error types for the extraction relay."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(eq=False)
class RelayConnectionError(Exception):
    """Handshake failure, connect timeout, unclean close, or reconnect exhaustion.

    Delivered through the connection's ``failed`` event; never raised to callers of ``connect()``.
    """

    message: str
    code: int | None = None
    terminal: bool = False

    def __str__(self) -> str:
        return self.message


@dataclass(eq=False)
class FrameParseError(Exception):
    """Raised when an inbound frame is not a well-formed JSON object with a kind."""

    message: str
    raw: str | bytes | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(eq=False)
class TargetResolutionError(Exception):
    """Raised when no execution target qualifies for a request."""

    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(eq=False)
class SandboxError(Exception):
    """Raised when the sandbox rejects the work or reports an internal failure."""

    message: str

    def __str__(self) -> str:
        return self.message


__all__ = [
    "FrameParseError",
    "RelayConnectionError",
    "SandboxError",
    "TargetResolutionError",
]
