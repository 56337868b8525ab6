"""Client identity configuration."""

from __future__ import annotations

ENV_CLIENT_ID = "TABRELAY_CLIENT_ID"

CLIENT_ID_PREFIX = "tabrelay"

__all__ = ["ENV_CLIENT_ID", "CLIENT_ID_PREFIX"]
