from .parser import parse_server_frame
from .dispatch import MessageDispatcher, log_system_frames
from .messages import (
    ResultAck,
    ServerError,
    HeartbeatAck,
    InboundEvent,
    RegistrationAck,
    ExtractionRequest,
)

__all__ = [
    "ExtractionRequest",
    "HeartbeatAck",
    "InboundEvent",
    "MessageDispatcher",
    "RegistrationAck",
    "ResultAck",
    "ServerError",
    "log_system_frames",
    "parse_server_frame",
]
