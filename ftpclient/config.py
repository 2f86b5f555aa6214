# config.py
"""
Defaults and runtime configuration for the FTP client.

Values come from module constants, then FTP_CLIENT_* environment variables,
then explicit overrides (usually parsed command-line arguments).
"""

import logging
import os
from dataclasses import dataclass, fields
from typing import Optional

from ftpclient.modes import TransferMode

DEFAULT_FTP_PORT = 21
DEFAULT_ENCODING = "utf-8"
PROMPT = "FTP> "
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

ENV_PREFIX = "FTP_CLIENT_"

_TRUTHY = ('1', 'true', 'yes', 'on')


def _env(name: str) -> Optional[str]:
    return os.getenv(ENV_PREFIX + name)


def _env_flag(name: str) -> Optional[bool]:
    value = _env(name)
    if value is None:
        return None
    return value.strip().lower() in _TRUTHY


@dataclass
class ClientConfig:
    host: str = ""
    port: int = DEFAULT_FTP_PORT
    mode: TransferMode = TransferMode.ACTIVE
    debug: bool = False
    encoding: str = DEFAULT_ENCODING
    # None keeps sockets fully blocking
    timeout: Optional[float] = None
    # Address advertised in PORT instead of the auto-detected one
    active_address: Optional[str] = None
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, **overrides) -> "ClientConfig":
        """Build a config from FTP_CLIENT_* variables; non-None overrides win."""
        values = {}

        port = _env("PORT")
        if port:
            try:
                values["port"] = int(port)
            except ValueError:
                raise ValueError(f"Invalid {ENV_PREFIX}PORT '{port}'")

        passive = _env_flag("PASSIVE")
        if passive is not None:
            values["mode"] = TransferMode.PASSIVE if passive else TransferMode.ACTIVE

        debug = _env_flag("DEBUG")
        if debug is not None:
            values["debug"] = debug

        timeout = _env("TIMEOUT")
        if timeout:
            try:
                values["timeout"] = float(timeout)
            except ValueError:
                raise ValueError(f"Invalid {ENV_PREFIX}TIMEOUT '{timeout}'")

        for key, name in (("encoding", "ENCODING"),
                          ("active_address", "ACTIVE_ADDRESS"),
                          ("log_level", "LOG_LEVEL")):
            value = _env(name)
            if value:
                values[key] = value

        known = {f.name for f in fields(cls)}
        for key, value in overrides.items():
            if key not in known:
                raise TypeError(f"Unknown configuration option '{key}'")
            if value is not None:
                values[key] = value

        return cls(**values)

    @property
    def level(self) -> int:
        """Numeric logging level for the configured log_level name."""
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.WARNING


def configure_logging(config: ClientConfig) -> None:
    """Install the root handler once and apply the package level."""
    logging.basicConfig(level=config.level, format=LOG_FORMAT)
    apply_debug(config.debug)


def apply_debug(debug: bool) -> None:
    """Force DEBUG on the package logger, or fall back to the root level."""
    logging.getLogger("ftpclient").setLevel(logging.DEBUG if debug else logging.NOTSET)
