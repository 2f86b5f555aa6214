import socket
import logging
from typing import Optional

from ftpclient.core.address import encode_port, find_local_ipv4, parse_pasv_response
from ftpclient.core.connection import ControlConnectionManager
from ftpclient.errors import ConnectError, FtpClientError, MalformedAddressError, ProtocolError, TransferError
from ftpclient.modes import TransferMode

logger = logging.getLogger(__name__)

PASV_OK = 227
PORT_OK = 200


class DataConnectionManager:
    """
    Sets up and drains one FTP data connection.

    Passive mode connects to the endpoint offered in the 227 reply as soon as
    `negotiate()` runs. Active mode listens locally, advertises the endpoint
    with PORT, and only accepts the server's connection in `accept()`, which
    must be called after the transfer command was sent.
    """

    def __init__(self, mode: TransferMode, control: ControlConnectionManager,
                 active_address: Optional[str] = None, timeout: Optional[float] = None):
        self.mode = mode
        self.control = control
        self.active_address = active_address
        self.timeout = timeout
        self.encoding = control.encoding
        self.data_socket: Optional[socket.socket] = None
        self.listener: Optional[socket.socket] = None
        self.endpoint = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    # --- negotiation ------------------------------------------------------

    def negotiate(self) -> bool:
        """
        Prepare the data channel before the transfer command goes out.

        Passive failures are logged and reported as False. Active mode raises
        NoLocalAddressError, ConnectError or ProtocolError.
        """
        if self.mode is TransferMode.PASSIVE:
            self.data_socket = self._start_passive()
            return self.data_socket is not None
        self._start_active()
        return True

    def _exchange(self, command: str):
        self.control.send_command(command)
        response = self.control.read_response()
        for line in response.lines:
            self.control.echo(line)
        return response

    def _start_passive(self) -> Optional[socket.socket]:
        logger.debug("[DATA] Sending 'PASV'")
        try:
            response = self._exchange("PASV")
        except (OSError, FtpClientError) as e:
            logger.error(f"[DATA] PASV exchange failed: {e}")
            self.control.echo(str(e))
            return None

        if response.code != PASV_OK:
            logger.error(f"[DATA] PASV refused with code {response.code}")
            return None

        try:
            ip, port = parse_pasv_response(response.lines[-1])
        except MalformedAddressError as e:
            logger.error(f"[DATA] Could not parse PASV reply {response.lines[-1]!r}: {e}")
            self.control.echo(f"Invalid PASV reply: {e}")
            return None

        logger.debug(f"[DATA] IP = '{ip}', Port = '{port}'")
        self.endpoint = (ip, port)
        try:
            return self._connect(ip, port)
        except ConnectError as e:
            self.control.echo(str(e))
            return None

    def _connect(self, ip: str, port: int) -> socket.socket:
        try:
            sock = socket.create_connection((ip, port), self.timeout)
        except OSError as e:
            logger.error(f"[DATA] ✗ Failed to connect to {ip}:{port} - {e}")
            raise ConnectError(f"Failed to open data connection to {ip}:{port} - {e}") from e
        logger.info(f"[DATA] Connected to {ip}:{port}")
        return sock

    def _start_active(self):
        local_ip = self.active_address or find_local_ipv4()

        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            listener.bind((local_ip, 0))
            listener.listen(1)
        except OSError as e:
            listener.close()
            raise ConnectError(f"Could not listen on {local_ip}: {e}") from e
        listener.settimeout(self.timeout)

        ip, port = listener.getsockname()[:2]
        self.endpoint = (ip, port)
        logger.debug(f"[DATA] IP ---- Port: {ip} ---- {port}")

        try:
            params = encode_port(ip, port)
            logger.debug(f"[DATA] Sending 'PORT {params}'")
            response = self._exchange(f"PORT {params}")
        except OSError as e:
            listener.close()
            raise ConnectError(f"PORT exchange failed: {e}") from e
        except FtpClientError:
            listener.close()
            raise

        if response.code != PORT_OK:
            listener.close()
            raise ProtocolError(f"PORT rejected: {response.lines[-1]}", response)

        self.listener = listener

    def accept(self):
        """Take the server's inbound connection (active mode only)."""
        if self.mode is TransferMode.PASSIVE:
            return
        if self.listener is None:
            raise ProtocolError("No active listener; PORT was not negotiated")

        logger.debug("[DATA] Waiting for data connection...")
        try:
            self.data_socket, address = self.listener.accept()
        except OSError as e:
            raise ConnectError(f"Server did not open the data connection: {e}") from e
        finally:
            self.listener.close()
            self.listener = None
        logger.info(f"[DATA] Data connection established with {address[0]}:{address[1]}")

    # --- transfer ---------------------------------------------------------

    def read_data(self, sink) -> int:
        """
        Copy every line of the data connection into `sink` until the peer
        closes it. The connection is closed afterwards in every case.
        """
        if self.data_socket is None:
            self.close()
            raise TransferError("No data connection to read from")

        count = 0
        try:
            with sink, self.data_socket.makefile('rb') as stream:
                for raw in stream:
                    sink.write_line(raw.decode(self.encoding, errors='replace').rstrip('\r\n'))
                    count += 1
        except OSError as e:
            logger.error(f"[DATA] Transfer aborted after {count} line(s): {e}")
            raise TransferError(f"Data transfer failed after {count} line(s): {e}") from e
        finally:
            self.close()

        logger.debug(f"[DATA] {count} line(s) received")
        return count

    def close(self):
        if self.data_socket is not None:
            try:
                self.data_socket.close()
            except OSError as e:
                logger.warning(f"[DATA] Error closing data socket: {e}")
            self.data_socket = None
            logger.debug("[DATA] Data connection closed")
        if self.listener is not None:
            try:
                self.listener.close()
            except OSError as e:
                logger.warning(f"[DATA] Error closing listener: {e}")
            self.listener = None
