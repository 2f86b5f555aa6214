__version__ = "1.0.0"
__description__ = "Interactive FTP client with active (PORT) and passive (PASV) data connections."

# Configuration first: the core modules import its defaults
from .config import ClientConfig
from .modes import TransferMode, TransferType, SessionState
from .errors import (
    FtpClientError,
    ConnectError,
    ProtocolError,
    MalformedAddressError,
    NoLocalAddressError,
    TransferError,
)
from .core import (
    ClientCommandHandler,
    ControlConnectionManager,
    DataConnectionManager,
    Response,
    ResponseFramer,
)

__all__ = [
    "ClientConfig",
    "TransferMode",
    "TransferType",
    "SessionState",
    "FtpClientError",
    "ConnectError",
    "ProtocolError",
    "MalformedAddressError",
    "NoLocalAddressError",
    "TransferError",
    "ClientCommandHandler",
    "ControlConnectionManager",
    "DataConnectionManager",
    "Response",
    "ResponseFramer",
    "__version__",
]
