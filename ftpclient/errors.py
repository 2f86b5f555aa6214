"""
Exception taxonomy for the FTP client.

Every error raised by the protocol engine derives from FtpClientError so the
command loop can report it and keep the control connection alive.
"""


class FtpClientError(Exception):
    """Base class for all client-side FTP failures."""


class ConnectError(FtpClientError, ConnectionError):
    """The control or data socket could not be established."""


class ProtocolError(FtpClientError):
    """Missing or malformed status line, or an unexpected reply code."""

    def __init__(self, message: str, response=None):
        super().__init__(message)
        self.response = response


class MalformedAddressError(FtpClientError, ValueError):
    """PASV/PORT host-port parameters could not be encoded or decoded."""


class NoLocalAddressError(FtpClientError):
    """Active mode could not find a usable local IPv4 address."""


class TransferError(FtpClientError):
    """Reading from the data connection or writing to the sink failed."""
