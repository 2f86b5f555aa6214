from enum import Enum


class TransferMode(Enum):
    """How the data connection is established."""
    ACTIVE = "Active"
    PASSIVE = "Passive"

    def toggled(self) -> "TransferMode":
        return TransferMode.PASSIVE if self is TransferMode.ACTIVE else TransferMode.ACTIVE


class TransferType(Enum):
    """Representation type negotiated with TYPE."""
    ASCII = "A"
    BINARY = "I"


class SessionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    AUTHENTICATING = "authenticating"
    READY = "ready"
