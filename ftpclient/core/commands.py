import logging
import os
from datetime import datetime
from typing import Callable, Optional

from ftpclient.config import ClientConfig
from ftpclient.core.connection import ControlConnectionManager, mask_command
from ftpclient.core.data_connection import DataConnectionManager
from ftpclient.core.sinks import ConsoleSink, FileSink
from ftpclient.errors import FtpClientError
from ftpclient.modes import TransferMode, TransferType

logger = logging.getLogger(__name__)


class ClientCommandHandler:
    """
    Runs client operations over one control connection.

    Simple commands map to a single control-channel exchange. LIST and RETR go
    through run_data_command, which orders the data-channel setup around the
    transfer command according to the current mode.
    """

    def __init__(self, connection: ControlConnectionManager, mode: TransferMode = TransferMode.ACTIVE,
                 active_address: Optional[str] = None, timeout: Optional[float] = None):
        self.conn = connection
        self.mode = mode
        self.active_address = active_address
        self.timeout = timeout
        # history as list of dicts: {"time":..., "command":..., "ok":bool, "response":..., ...}
        self.history = []

    @classmethod
    def from_config(cls, config: ClientConfig, echo: Callable[[str], None] = print) -> "ClientCommandHandler":
        connection = ControlConnectionManager(config.host, config.port, timeout=config.timeout,
                                              encoding=config.encoding, echo=echo, debug=config.debug)
        return cls(connection, mode=config.mode, active_address=config.active_address,
                   timeout=config.timeout)

    # --- session ----------------------------------------------------------

    def open(self) -> bool:
        ok = self.conn.open()
        self._record(f"CONNECT {self.conn.host}:{self.conn.port}", ok)
        return ok

    def close(self):
        self.conn.close()
        self._record("QUIT", True)

    def toggle_mode(self) -> TransferMode:
        self.mode = self.mode.toggled()
        self.conn.echo(f"Connection mode set to {self.mode.value}")
        logger.info(f"Transfer mode is now {self.mode.value}")
        return self.mode

    def toggle_debug(self) -> bool:
        return self.conn.toggle_debug()

    # --- control-only commands --------------------------------------------

    def _execute(self, label: str, ok: bool) -> bool:
        self._record(label, ok)
        return ok

    def user(self, username: str) -> bool:
        """True means the server accepted the name and expects PASS next."""
        return self._execute(f"USER {username}", self.conn.send_user(username))

    def password(self, password: str) -> bool:
        return self._execute("PASS ****", self.conn.send_pass(password))

    def set_type(self, transfer_type: TransferType) -> bool:
        return self._execute(f"TYPE {transfer_type.value}", self.conn.set_encoding(transfer_type))

    def cwd(self, path: str) -> bool:
        return self._execute(f"CWD {path}", self.conn.change_directory(path))

    def cdup(self) -> bool:
        return self.cwd("..")

    def pwd(self) -> bool:
        return self._execute("XPWD", self.conn.print_working_directory())

    # --- data commands ----------------------------------------------------

    def run_data_command(self, command: str, sink) -> bool:
        """
        Passive: PASV and connect, then send `command`.
        Active: PORT, send `command`, then accept the server's connection.
        Either way the payload goes to `sink` and the completion reply is read.
        """
        with DataConnectionManager(self.mode, self.conn, self.active_address, self.timeout) as data:
            try:
                if not data.negotiate():
                    logger.warning(f"No data channel; '{command}' was not sent")
                    return False
            except FtpClientError as e:
                logger.error(f"Data channel negotiation failed ({self.mode.value}): {e}")
                self.conn.echo(f"Error: {e}")
                return False

            if not self.conn.send_over_line(command):
                return False
            reply = self.conn.last_response
            if reply is not None and reply.code >= 400:
                # Transient refusal: the server will neither connect nor send a completion reply
                logger.warning(f"'{mask_command(command)}' refused with {reply.code}; skipping transfer")
                return False

            try:
                data.accept()
                data.read_data(sink)
            except FtpClientError as e:
                logger.error(f"'{mask_command(command)}' transfer failed: {e}")
                self.conn.echo(f"Error: {e}")
                # The server still reports the aborted transfer on the control channel
                self.conn.send_over_line(None)
                return False

        return self.conn.send_over_line(None)

    def list(self, path: str = "", sink=None) -> bool:
        command = f"LIST {path}".strip()
        if sink is None:
            sink = ConsoleSink(self.conn.echo)
        ok = self.run_data_command(command, sink)
        self._record(command, ok, data=getattr(sink, "text", None))
        return ok

    def retr(self, remote_path: str, local_path: Optional[str] = None) -> bool:
        """Download `remote_path`, by default into the current directory under its base name."""
        if local_path is None:
            local_path = os.path.basename(remote_path.rstrip("/")) or remote_path
        sink = FileSink(local_path, encoding=self.conn.encoding)
        ok = self.run_data_command(f"RETR {remote_path}", sink)
        self._record(f"RETR {remote_path}", ok, file=local_path)
        return ok

    # --- history ----------------------------------------------------------

    def _record(self, command: str, ok: bool, **extra):
        response = self.conn.last_response
        entry = {
            "time": datetime.now(),
            "command": command,
            "ok": ok,
            "response": response.text if response is not None else None,
            "code": response.code if response is not None else None,
        }
        entry.update(extra)
        self.history.append(entry)

    def get_history(self):
        """Return a copy of the history list."""
        return list(self.history)

    def clear_history(self):
        self.history.clear()
