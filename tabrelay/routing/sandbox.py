"""Remote execution sandbox interface and result interpretation."""

from __future__ import annotations

import re
import asyncio
import inspect
from typing import Any, Protocol
from collections.abc import Mapping

from tabrelay.errors import SandboxError

from .targets import TargetCandidate

NO_RESULT_MESSAGE = "No result from script execution"
UNREACHABLE_MESSAGE = (
    "Cannot communicate with the target page - content script not loaded. "
    "Please refresh the page and try again."
)
TIMEOUT_MESSAGE = "Target page extraction timed out - page may be busy or unresponsive"
FAILURE_PREFIX = "Extraction failed: "

_UNREACHABLE_MARKERS = ("Could not establish connection", "Receiving end does not exist")
# Whole words only; a field name such as "timeoutMs" is not a timeout.
_TIMEOUT_PATTERN = re.compile(r"\b(?:timeout|timed out)\b", re.IGNORECASE)


class Sandbox(Protocol):
    """Runs one unit of work against a target and returns its result."""

    def run_in_sandbox(self, target: TargetCandidate, payload: Any) -> Any: ...


def describe_sandbox_failure(exc: BaseException) -> str:
    message = str(exc).strip() or type(exc).__name__
    if any(marker in message for marker in _UNREACHABLE_MARKERS):
        return UNREACHABLE_MESSAGE
    if isinstance(exc, TimeoutError) or _TIMEOUT_PATTERN.search(message):
        return TIMEOUT_MESSAGE
    if message.startswith(FAILURE_PREFIX):
        return message
    return f"{FAILURE_PREFIX}{message}"


def interpret_sandbox_result(result: Any) -> Any:
    """Unwrap a ``{success, data, error}`` envelope; other values are the data itself."""
    if result is None:
        raise SandboxError(NO_RESULT_MESSAGE)
    if isinstance(result, Mapping) and "success" in result:
        if not result.get("success"):
            raise SandboxError(str(result.get("error") or "sandbox reported failure"))
        return result.get("data")
    return result


async def run_extraction(sandbox: Sandbox, target: TargetCandidate, payload: Any) -> Any:
    try:
        result = sandbox.run_in_sandbox(target, payload)
        if inspect.isawaitable(result):
            result = await result
        return interpret_sandbox_result(result)
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        raise SandboxError(describe_sandbox_failure(exc)) from exc


__all__ = [
    "NO_RESULT_MESSAGE",
    "Sandbox",
    "TIMEOUT_MESSAGE",
    "UNREACHABLE_MESSAGE",
    "describe_sandbox_failure",
    "interpret_sandbox_result",
    "run_extraction",
]
