"""
Enumeration types for lanexpose.

Defines the session lifecycle states, target resolution strategies and
logging levels shared across the proxy core and the CLI.
"""

from enum import Enum


# =============================================================================
# Session-Related Enums
# =============================================================================


class SessionState(str, Enum):
    """
    Exposure session lifecycle state.

    State transitions:
        IDLE -> NEGOTIATING (start requested)
        NEGOTIATING -> RUNNING (every interface bound)
        NEGOTIATING -> STOPPED (discovery/negotiation/target/listen failure)
        RUNNING -> SHUTTING_DOWN (interrupt or fatal listener error)
        SHUTTING_DOWN -> STOPPED (every listener and relay has exited)
    """

    IDLE = "idle"
    NEGOTIATING = "negotiating"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


class TargetStrategy(str, Enum):
    """
    How the upstream target is discovered when no explicit port is given.

    - IP: container network address plus the configured container port
    - ENV: port named by an environment variable inside the container
    """

    IP = "ip"
    ENV = "env"


# =============================================================================
# Logging Enums
# =============================================================================


class LogLevel(str, Enum):
    """
    Logging verbosity levels.

    Levels (from most to least verbose):
        - FULL: Complete trace with detailed stack information
        - DEBUG: Debug messages and above
        - INFO: Informational messages and above
        - WARNING: Only warnings and errors
    """

    FULL = "full"
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
