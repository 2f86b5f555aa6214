"""
Core FTP client logic.
Includes the control connection, response framing, PORT/PASV address
encoding, data connections, sinks and the command handler.
"""

from .parser import Response, ResponseFramer
from .address import encode_port, decode_passive, parse_pasv_response, find_local_ipv4
from .connection import ControlConnectionManager
from .data_connection import DataConnectionManager
from .sinks import ConsoleSink, CollectingSink, FileSink
from .commands import ClientCommandHandler

__all__ = [
    "Response",
    "ResponseFramer",
    "encode_port",
    "decode_passive",
    "parse_pasv_response",
    "find_local_ipv4",
    "ControlConnectionManager",
    "DataConnectionManager",
    "ConsoleSink",
    "CollectingSink",
    "FileSink",
    "ClientCommandHandler",
]
