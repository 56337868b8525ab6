"""Execution target lookup and selection."""

from __future__ import annotations

import fnmatch
import inspect
import logging
from typing import Any, Protocol
from collections.abc import Mapping, Iterable, Sequence
from dataclasses import dataclass

from tabrelay.errors import TargetResolutionError

logger = logging.getLogger(__name__)

NO_TARGETS_MESSAGE = "No execution targets found"
NO_LOADED_TARGETS_MESSAGE = "No loaded execution targets found - please refresh the page"


@dataclass(frozen=True, slots=True)
class TargetCriteria:
    origin_patterns: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class TargetCandidate:
    id: Any
    ready: bool
    origin_matches: bool
    active: bool = False
    discarded: bool = False
    url: str = ""
    title: str = ""

    @property
    def qualifies(self) -> bool:
        return self.ready and not self.discarded and self.origin_matches

    @classmethod
    def from_descriptor(
        cls,
        descriptor: TargetCandidate | Mapping[str, Any],
        *,
        origin_patterns: Iterable[str] = (),
    ) -> TargetCandidate:
        if isinstance(descriptor, TargetCandidate):
            return descriptor
        url = str(descriptor.get("url") or "")
        if "originMatches" in descriptor:
            origin_ok = bool(descriptor["originMatches"])
        elif "origin_matches" in descriptor:
            origin_ok = bool(descriptor["origin_matches"])
        else:
            origin_ok = matches_origin(url, origin_patterns)
        return cls(
            id=descriptor.get("id"),
            ready=bool(descriptor.get("ready", False)),
            origin_matches=origin_ok,
            active=bool(descriptor.get("active", False)),
            discarded=bool(descriptor.get("discarded", False)),
            url=url,
            title=str(descriptor.get("title") or ""),
        )


class TargetLocator(Protocol):
    """Lists candidate execution contexts, in preference order."""

    def locate_execution_targets(
        self, criteria: TargetCriteria
    ) -> Sequence[TargetCandidate | Mapping[str, Any]] | Any: ...


def matches_origin(url: str, patterns: Iterable[str]) -> bool:
    if not url:
        return False
    return any(fnmatch.fnmatchcase(url, pattern) for pattern in patterns)


def select_target(candidates: Sequence[TargetCandidate]) -> TargetCandidate:
    """Prefer the active candidate when it qualifies, else the first qualifying one."""
    if not candidates:
        raise TargetResolutionError(NO_TARGETS_MESSAGE)

    qualifying = [c for c in candidates if c.qualifies]
    for candidate in qualifying:
        if candidate.active:
            return candidate
    if not qualifying:
        raise TargetResolutionError(NO_LOADED_TARGETS_MESSAGE)
    return qualifying[0]


async def resolve_target(locator: TargetLocator, criteria: TargetCriteria) -> TargetCandidate:
    try:
        found = locator.locate_execution_targets(criteria)
        if inspect.isawaitable(found):
            found = await found
    except TargetResolutionError:
        raise
    except Exception as exc:
        raise TargetResolutionError(f"Target lookup failed: {exc}") from exc

    candidates = [
        TargetCandidate.from_descriptor(d, origin_patterns=criteria.origin_patterns) for d in (found or [])
    ]
    target = select_target(candidates)
    logger.debug(
        "Selected target id=%s active=%s out of %s candidate(s)",
        target.id,
        target.active,
        len(candidates),
    )
    return target


__all__ = [
    "NO_LOADED_TARGETS_MESSAGE",
    "NO_TARGETS_MESSAGE",
    "TargetCandidate",
    "TargetCriteria",
    "TargetLocator",
    "matches_origin",
    "resolve_target",
    "select_target",
]
