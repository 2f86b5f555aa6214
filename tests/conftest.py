"""
Scripted FTP server used by the tests.

It runs on 127.0.0.1 in a background thread, answers one client, and records
every command line it receives (and data-connection events) in `events`.
"""

import socket
import threading

import pytest

from ftpclient.core.commands import ClientCommandHandler
from ftpclient.core.connection import ControlConnectionManager
from ftpclient.modes import TransferMode

TIMEOUT = 5.0

DEFAULT_REPLIES = {
    "USER": "331 Password required",
    "PASS": "230 Logged in",
    "TYPE": "200 Type set",
    "CWD": "250 Directory successfully changed",
    "XPWD": '257 "/pub" is the current directory',
    "QUIT": "221 Goodbye",
}


class FakeFtpServer:
    def __init__(self, greeting="220 Welcome", replies=None, listing=None, files=None):
        self.greeting = greeting
        self.replies = dict(DEFAULT_REPLIES)
        self.replies.update(replies or {})
        self.listing = listing if listing is not None else []
        self.files = files or {}
        self.events = []
        self.errors = []
        self.port_endpoint = None
        self.pasv_listener = None

        self.listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.listener.bind(("127.0.0.1", 0))
        self.listener.listen(1)
        self.listener.settimeout(TIMEOUT)
        self.host, self.port = self.listener.getsockname()
        self.thread = threading.Thread(target=self._serve, daemon=True)
        self.thread.start()

    @property
    def received(self):
        return [e[1] for e in self.events if e[0] == "recv"]

    def _send(self, conn, reply):
        lines = reply if isinstance(reply, (list, tuple)) else [reply]
        for line in lines:
            conn.sendall((line + "\r\n").encode())

    def _serve(self):
        try:
            conn, _ = self.listener.accept()
        except OSError:
            return
        conn.settimeout(TIMEOUT)
        try:
            self._send(conn, self.greeting)
            with conn.makefile("rb") as stream:
                for raw in stream:
                    line = raw.decode().rstrip("\r\n")
                    self.events.append(("recv", line))
                    verb, _, arg = line.partition(" ")
                    if not self._handle(conn, verb.upper(), arg):
                        break
        except OSError as e:
            self.errors.append(e)
        finally:
            conn.close()

    def _handle(self, conn, verb, arg):
        if verb in self.replies and verb not in ("PASV", "PORT", "LIST", "RETR"):
            self._send(conn, self.replies[verb])
            return verb != "QUIT"

        if verb in self.replies:
            # Scripted override: no real data connection is served
            self._send(conn, self.replies[verb])
        elif verb == "PASV":
            self.pasv_listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            self.pasv_listener.bind(("127.0.0.1", 0))
            self.pasv_listener.listen(1)
            self.pasv_listener.settimeout(TIMEOUT)
            port = self.pasv_listener.getsockname()[1]
            self._send(conn, f"227 Entering Passive Mode (127,0,0,1,{port // 256},{port % 256}).")
        elif verb == "PORT":
            numbers = [int(n) for n in arg.split(",")]
            self.port_endpoint = (".".join(str(n) for n in numbers[:4]), numbers[4] * 256 + numbers[5])
            self._send(conn, "200 PORT command successful")
        elif verb in ("LIST", "RETR"):
            payload = self.listing if verb == "LIST" else self.files.get(arg)
            if payload is None:
                self._send(conn, "550 Failed to open file")
            else:
                self._transfer(conn, payload)
        else:
            self._send(conn, "502 Command not implemented")
        return True

    def _transfer(self, conn, payload):
        if self.pasv_listener is not None:
            data, _ = self.pasv_listener.accept()
            self.pasv_listener.close()
            self.pasv_listener = None
            self._send(conn, "150 Here comes the data")
        elif self.port_endpoint is not None:
            self._send(conn, "150 Opening data connection")
            data = socket.create_connection(self.port_endpoint, TIMEOUT)
            self.port_endpoint = None
            self.events.append(("data-connect",))
        else:
            self._send(conn, "425 Use PORT or PASV first")
            return
        with data:
            for line in payload:
                data.sendall((line + "\r\n").encode())
        self._send(conn, "226 Transfer complete")

    def close(self):
        self.listener.close()
        if self.pasv_listener is not None:
            self.pasv_listener.close()
        self.thread.join(TIMEOUT)


@pytest.fixture
def ftp_server_factory():
    servers = []

    def factory(**kwargs):
        server = FakeFtpServer(**kwargs)
        servers.append(server)
        return server

    yield factory
    for server in servers:
        server.close()


@pytest.fixture
def ftp_server(ftp_server_factory):
    return ftp_server_factory(listing=["a.txt", "b.txt"])


@pytest.fixture
def transcript():
    return []


@pytest.fixture
def make_control(transcript, ftp_server_factory):
    connections = []

    def factory(server):
        conn = ControlConnectionManager(server.host, server.port, timeout=TIMEOUT, echo=transcript.append)
        connections.append(conn)
        return conn

    yield factory
    for conn in connections:
        conn.disconnect()


@pytest.fixture
def make_handler(make_control):
    def factory(server, mode=TransferMode.PASSIVE, connect=True):
        handler = ClientCommandHandler(make_control(server), mode=mode,
                                       active_address="127.0.0.1", timeout=TIMEOUT)
        if connect:
            assert handler.open()
        return handler

    return factory
