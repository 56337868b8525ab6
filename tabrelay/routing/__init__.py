from .router import FrameSender, RouterStats, RequestRouter
from .sandbox import Sandbox, run_extraction, describe_sandbox_failure, interpret_sandbox_result
from .targets import (
    TargetLocator,
    TargetCriteria,
    TargetCandidate,
    select_target,
    matches_origin,
    resolve_target,
)
from .inflight import InFlightRequest, InFlightRegistry

__all__ = [
    "FrameSender",
    "InFlightRegistry",
    "InFlightRequest",
    "RequestRouter",
    "RouterStats",
    "Sandbox",
    "TargetCandidate",
    "TargetCriteria",
    "TargetLocator",
    "describe_sandbox_failure",
    "interpret_sandbox_result",
    "matches_origin",
    "resolve_target",
    "run_extraction",
    "select_target",
]
