"""
LAN relay core.

Target resolution, per-connection relays and the exposure session that ties
listeners on every interface to a single upstream.
"""

from lanexpose.proxy.relay import ConnectionRelay
from lanexpose.proxy.session import ExposureSession
from lanexpose.proxy.target import (
    ContainerEnvResolver,
    ContainerIPResolver,
    ExplicitPortResolver,
    TargetResolver,
)

__all__ = [
    "ConnectionRelay",
    "ContainerEnvResolver",
    "ContainerIPResolver",
    "ExplicitPortResolver",
    "ExposureSession",
    "TargetResolver",
]
