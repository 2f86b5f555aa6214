import socket
import logging
from typing import Callable, Optional

from ftpclient.config import DEFAULT_ENCODING, DEFAULT_FTP_PORT, apply_debug
from ftpclient.core.parser import Response, ResponseFramer
from ftpclient.errors import ConnectError, FtpClientError
from ftpclient.modes import SessionState, TransferType

logger = logging.getLogger(__name__)

# Reply codes that move the session state machine forward
USER_LOGGED_IN = 230
USER_NEEDS_PASSWORD = 331


def mask_command(command: str) -> str:
    if command[:5].upper() == "PASS ":
        return "PASS ****"
    return command


class ControlConnectionManager:
    """
    Owns the FTP control connection.

    Commands go out one per line; every reply is framed by ResponseFramer and
    its lines are handed to `echo` for display.
    """

    def __init__(self, host: str, port: int = DEFAULT_FTP_PORT, timeout: Optional[float] = None,
                 encoding: str = DEFAULT_ENCODING, echo: Callable[[str], None] = print,
                 debug: bool = False):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.encoding = encoding
        self.echo = echo
        self.debug = debug
        self.socket: Optional[socket.socket] = None
        self.transfer_type = TransferType.ASCII
        self.state = SessionState.DISCONNECTED
        self.last_response: Optional[Response] = None
        self._file = None
        self._framer: Optional[ResponseFramer] = None

    @property
    def connected(self) -> bool:
        return self.socket is not None

    def connect(self):
        if self.socket is not None:
            raise RuntimeError("Connection already established.")
        try:
            logger.info(f"Connecting to {self.host}:{self.port} (timeout={self.timeout})")
            self.socket = socket.create_connection((self.host, self.port), self.timeout)
        except OSError as e:
            logger.error(f"✗ Failed to connect to {self.host}:{self.port} - {e}")
            self.socket = None
            raise ConnectError(f"Failed to connect to {self.host}:{self.port} - {e}") from e
        self._file = self.socket.makefile('rb')
        self._framer = ResponseFramer(self._readline)
        self.state = SessionState.CONNECTED
        logger.info(f"✓ Connected to {self.host}:{self.port}")

    def open(self) -> bool:
        """Connect and consume the greeting. False only when the socket could not connect."""
        try:
            self.connect()
        except ConnectError as e:
            self.echo(str(e))
            return False

        greeted = self.send_over_line(None)
        logger.debug(f"Application is {'CONNECTED' if greeted else 'NOT CONNECTED'}")
        if not greeted:
            logger.warning(f"Server at {self.host}:{self.port} did not send a usable greeting")
        return True

    def disconnect(self):
        if self.socket is None:
            return
        logger.info(f"Closing connection to {self.host}:{self.port}")
        try:
            self._file.close()
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug(f"Shutdown of control socket failed: {e}")
        try:
            self.socket.close()
        except OSError as e:
            logger.warning(f"Error closing control socket: {e}")
        finally:
            self.socket = None
            self._file = None
            self._framer = None
            self.state = SessionState.DISCONNECTED
        logger.info(f"✓ Disconnected from {self.host}:{self.port}")

    def close(self):
        """Send QUIT and release the socket whatever the outcome."""
        if self.socket is None:
            return
        try:
            if not self.quit():
                logger.warning("QUIT was not acknowledged; closing anyway")
        finally:
            self.disconnect()

    # --- wire primitives --------------------------------------------------

    def _readline(self) -> str:
        raw = self._file.readline()
        return raw.decode(self.encoding, errors='replace')

    def send_command(self, command: str):
        if self.socket is None:
            raise ConnectError("No connection established.")
        logger.debug(f"→ SEND: {mask_command(command)}")
        if not command.endswith('\r\n'):
            command += '\r\n'
        self.socket.sendall(command.encode(self.encoding))

    def read_response(self) -> Response:
        if self._framer is None:
            raise ConnectError("No connection established.")
        response = self._framer.read()
        self.last_response = response
        return response

    def send_over_line(self, command: Optional[str] = None) -> bool:
        """
        Send `command` (if any), read one reply and echo it.

        Returns True for codes below 500. I/O and framing failures are
        reported through the log and `echo` and yield False.
        """
        self.last_response = None
        try:
            if command is not None:
                self.send_command(command)
            response = self.read_response()
        except (OSError, FtpClientError) as e:
            logger.error(f"Command {mask_command(command) if command else '<read>'} failed: {e}")
            self.echo(str(e))
            return False

        for line in response.lines:
            self.echo(line)
        return response.ok

    # --- commands ---------------------------------------------------------

    def send_user(self, user: str) -> bool:
        ok = self.send_over_line(f"USER {user}")
        if ok and self.last_response is not None:
            if self.last_response.code == USER_LOGGED_IN:
                self.state = SessionState.READY
            elif self.last_response.code == USER_NEEDS_PASSWORD:
                self.state = SessionState.AUTHENTICATING
        return ok

    def send_pass(self, password: str) -> bool:
        ok = self.send_over_line(f"PASS {password}")
        if ok:
            self.state = SessionState.READY
        return ok

    def set_encoding(self, transfer_type: TransferType) -> bool:
        ok = self.send_over_line(f"TYPE {transfer_type.value}")
        if ok:
            self.transfer_type = transfer_type
        return ok

    def change_directory(self, directory: str) -> bool:
        return self.send_over_line(f"CWD {directory}")

    def print_working_directory(self) -> bool:
        return self.send_over_line("XPWD")

    def quit(self) -> bool:
        return self.send_over_line("QUIT")

    def toggle_debug(self) -> bool:
        self.debug = not self.debug
        apply_debug(self.debug)
        return self.debug
