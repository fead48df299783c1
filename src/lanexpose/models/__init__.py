from lanexpose.models.enums import LogLevel, SessionState, TargetStrategy
from lanexpose.models.exposure import (
    ExposureTarget,
    NetworkInterface,
    ProxyInstance,
    RelayOutcome,
)

__all__ = [
    "ExposureTarget",
    "LogLevel",
    "NetworkInterface",
    "ProxyInstance",
    "RelayOutcome",
    "SessionState",
    "TargetStrategy",
]
