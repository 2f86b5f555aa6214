import logging
import re
from typing import Callable, List, Optional

from ftpclient.errors import ProtocolError

logger = logging.getLogger(__name__)

# A reply ends at the first line made of three digits followed by a space
TERMINAL_LINE = re.compile(r'^\d{3} ')

RESPONSE_TYPES = {
    '1': 'preliminary',
    '2': 'success',
    '3': 'missing_info',
    '4': 'error',
    '5': 'error'
}

# Codes at or above this value are failures; everything below continues
FAILURE_THRESHOLD = 500


def is_success(code: int) -> bool:
    return code < FAILURE_THRESHOLD


class Response:
    """One complete server reply: every raw line plus the final status code."""

    def __init__(self, lines: List[str], code: int):
        self.lines = list(lines)
        self.code = code

    @property
    def message(self) -> str:
        """Text of the terminal line after the code."""
        return self.lines[-1][4:] if self.lines else ""

    @property
    def type(self) -> str:
        return RESPONSE_TYPES.get(str(self.code)[0], 'unknown')

    @property
    def ok(self) -> bool:
        return is_success(self.code)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def __str__(self):
        return self.text

    def __repr__(self):
        return f"Response(code={self.code}, lines={len(self.lines)})"


class ResponseFramer:
    """
    Assembles raw control-connection lines into Response objects.

    `readline` returns one line per call (with or without its terminator) and
    an empty string or None once the stream is closed.
    """

    def __init__(self, readline: Callable[[], Optional[str]]):
        self._readline = readline

    def read(self) -> Response:
        lines = []
        while True:
            raw = self._readline()
            if not raw:
                logger.error(f"Control stream closed after {len(lines)} line(s) without a status line")
                raise ProtocolError("Connection closed before a complete response was received")
            line = raw.rstrip('\r\n')
            lines.append(line)
            logger.debug(f"← RECV: {line}")
            if TERMINAL_LINE.match(line):
                break

        terminal = lines[-1]
        try:
            code = int(terminal[:3])
        except ValueError as e:
            raise ProtocolError(f"Invalid FTP status line: {terminal!r}") from e

        response = Response(lines, code)
        logger.debug(f"Parsed response: code={code}, type={response.type}, lines={len(lines)}")
        return response
