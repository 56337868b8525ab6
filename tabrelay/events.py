"""Publish/subscribe fan-out whose handlers can never break the publisher."""

from __future__ import annotations

import inspect
import logging
from typing import Any
from collections.abc import Callable, Iterable, Awaitable

from blinker import Signal

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[None] | None]
Receiver = Callable[..., Awaitable[None]]


class Subscribers:
    """Blinker-backed fan-out keyed by event kind.

    Handlers may be plain callables or coroutine functions. A handler that raises
    is logged and skipped; the remaining handlers still run and the error never
    reaches the code that published the event.
    """

    def __init__(self, name: str, *, kinds: Iterable[str] | None = None) -> None:
        self._name = name
        self._kinds = frozenset(str(k) for k in kinds) if kinds is not None else None
        self._signals: dict[str, Signal] = {}
        self._receivers: dict[str, list[tuple[Handler, Receiver]]] = {}

    def _key(self, kind: Any) -> str | None:
        key = str(getattr(kind, "value", kind))
        if self._kinds is not None and key not in self._kinds:
            logger.warning("%s: unknown event kind %r", self._name, key)
            return None
        return key

    def _wrap(self, key: str, handler: Handler) -> Receiver:
        async def _receiver(_sender: Any, *, data: Any = None) -> None:
            try:
                result = handler(data)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("%s: error in %r handler", self._name, key)

        return _receiver

    def on(self, kind: Any, handler: Handler) -> Callable[[], None]:
        key = self._key(kind)
        if key is None:
            return lambda: None
        receiver = self._wrap(key, handler)
        signal = self._signals.setdefault(key, Signal())
        signal.connect(receiver, weak=False)
        self._receivers.setdefault(key, []).append((handler, receiver))
        return lambda: self._disconnect(key, receiver)

    def off(self, kind: Any, handler: Handler) -> None:
        key = self._key(kind)
        if key is None:
            return
        for registered, receiver in self._receivers.get(key, []):
            if registered is handler:
                self._disconnect(key, receiver)
                return

    def _disconnect(self, key: str, receiver: Receiver) -> None:
        entries = self._receivers.get(key, [])
        remaining = [(h, r) for h, r in entries if r is not receiver]
        if len(remaining) == len(entries):
            return
        self._receivers[key] = remaining
        self._signals[key].disconnect(receiver)

    def count(self, kind: Any) -> int:
        return len(self._receivers.get(str(getattr(kind, "value", kind)), []))

    async def emit(self, kind: Any, data: Any = None) -> None:
        key = str(getattr(kind, "value", kind))
        signal = self._signals.get(key)
        if signal is None:
            return
        await signal.send_async(self, data=data)


__all__ = ["Handler", "Subscribers"]
