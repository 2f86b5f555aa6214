"""
Interactive command loop.

Reads one command per line at the ``FTP> `` prompt and maps it onto the
ClientCommandHandler. Missing arguments are prompted for.
"""

import getpass
import logging
import re
from enum import Enum
from typing import Callable, Optional, Tuple

from ftpclient.config import PROMPT
from ftpclient.core.commands import ClientCommandHandler
from ftpclient.modes import SessionState, TransferType
from ftpclient.ui.suggest import get_suggestion

logger = logging.getLogger(__name__)


class ShellCommand(Enum):
    ASCII = "ascii"
    BINARY = "binary"
    CD = "cd"
    CDUP = "cdup"
    DEBUG = "debug"
    DIR = "dir"
    GET = "get"
    HELP = "help"
    PASSIVE = "passive"
    PWD = "pwd"
    QUIT = "quit"
    USER = "user"
    UNKNOWN = ""

    @classmethod
    def lookup(cls, word: str) -> "ShellCommand":
        word = word.strip().lower()
        for command in cls:
            if command is not cls.UNKNOWN and command.value == word:
                return command
        return cls.UNKNOWN

    @classmethod
    def names(cls):
        return [c.value for c in cls if c is not cls.UNKNOWN]


HELP_MESSAGE = (
    "ascii      --> Set ASCII transfer type",
    "binary     --> Set binary transfer type",
    "cd <path>  --> Change the remote working directory",
    "cdup       --> Change the remote working directory to the\n"
    "               parent directory (i.e., cd ..)",
    "debug      --> Toggle debug mode",
    "dir [path] --> List the contents of the remote directory",
    "get <path> --> Get a remote file",
    "help       --> Displays this text",
    "passive    --> Toggle passive/active mode",
    "pwd        --> Print the working directory on the server",
    "quit       --> Close the connection to the server and terminate",
    "user <name>--> Specify the user name (will prompt for password)",
)


def parse_line(line: str) -> Tuple[Optional[ShellCommand], str]:
    """Split an input line into (command, option). Blank lines give (None, "")."""
    parts = re.split(r"\s+", line.strip(), maxsplit=1)
    if not parts[0]:
        return None, ""
    option = parts[1].strip() if len(parts) > 1 else ""
    return ShellCommand.lookup(parts[0]), option


class FtpShell:
    def __init__(self, handler: ClientCommandHandler,
                 read_input: Callable[[str], str] = input,
                 read_password: Callable[[str], str] = getpass.getpass,
                 echo: Callable[[str], None] = print):
        self.handler = handler
        self.read_input = read_input
        self.read_password = read_password
        self.echo = echo
        self.handlers = {
            ShellCommand.ASCII: self._ascii,
            ShellCommand.BINARY: self._binary,
            ShellCommand.CD: self._cd,
            ShellCommand.CDUP: self._cdup,
            ShellCommand.DEBUG: self._debug,
            ShellCommand.DIR: self._dir,
            ShellCommand.GET: self._get,
            ShellCommand.HELP: self._help,
            ShellCommand.PASSIVE: self._passive,
            ShellCommand.PWD: self._pwd,
            ShellCommand.QUIT: self._quit,
            ShellCommand.USER: self._user,
        }

    def begin(self):
        """Connect, sign in, then run commands until quit or end of input."""
        if self.handler.open():
            self.sign_in()
        else:
            self.echo("Not connected. Type 'quit' to exit.")

        while True:
            try:
                line = self.read_input(PROMPT)
            except EOFError:
                self.echo("")
                self.handler.close()
                return
            if not self.dispatch(line):
                return

    def dispatch(self, line: str) -> bool:
        """Run one input line. False once the loop should stop."""
        command, option = parse_line(line)
        if command is None:
            return True
        if command is ShellCommand.UNKNOWN:
            word = line.split()[0]
            logger.debug(f"Unknown command: {word}")
            self.echo("ERROR: Unknown Command")
            suggestion = get_suggestion(word, ShellCommand.names())
            if suggestion:
                self.echo(f"Did you mean '{suggestion}'?")
            command = ShellCommand.HELP
        return self.handlers[command](option)

    def _ask(self, prompt: str, option: str) -> str:
        if option:
            return option
        try:
            return self.read_input(prompt).strip()
        except EOFError:
            return ""

    def sign_in(self, username: Optional[str] = None):
        if not username:
            username = self._ask("Username: ", "")
        if not self.handler.user(username) or self.handler.conn.state is SessionState.READY:
            return
        try:
            password = self.read_password("Password: ")
        except EOFError:
            self.echo("")
            logger.info("No password entered; PASS not sent")
            return
        self.handler.password(password.strip())

    # --- handlers ---------------------------------------------------------

    def _ascii(self, option: str) -> bool:
        self.handler.set_type(TransferType.ASCII)
        return True

    def _binary(self, option: str) -> bool:
        self.handler.set_type(TransferType.BINARY)
        return True

    def _cd(self, option: str) -> bool:
        path = self._ask("Remote Directory: ", option)
        if path:
            self.handler.cwd(path)
        return True

    def _cdup(self, option: str) -> bool:
        self.handler.cdup()
        return True

    def _debug(self, option: str) -> bool:
        enabled = self.handler.toggle_debug()
        self.echo(f"Debugging is {'ON' if enabled else 'OFF'}")
        return True

    def _dir(self, option: str) -> bool:
        self.handler.list(option)
        return True

    def _get(self, option: str) -> bool:
        path = self._ask("Remote file: ", option)
        if path:
            self.handler.retr(path)
        return True

    def _help(self, option: str) -> bool:
        for line in HELP_MESSAGE:
            self.echo(line)
        self.echo("")
        return True

    def _passive(self, option: str) -> bool:
        self.handler.toggle_mode()
        return True

    def _pwd(self, option: str) -> bool:
        self.handler.pwd()
        return True

    def _quit(self, option: str) -> bool:
        self.handler.close()
        return False

    def _user(self, option: str) -> bool:
        self.sign_in(option or None)
        return True
