"""Execution target selection configuration."""

from __future__ import annotations

ENV_ORIGIN_PATTERNS = "TABRELAY_ORIGIN_PATTERNS"

# Shell-style URL patterns a page must match to be used as an execution target.
DEFAULT_ORIGIN_PATTERNS: tuple[str, ...] = (
    "https://*.design.webflow.com/*",
    "https://*.design.wfdev.io/*",
    "https://*.wfdev.io/*",
)

__all__ = ["ENV_ORIGIN_PATTERNS", "DEFAULT_ORIGIN_PATTERNS"]
