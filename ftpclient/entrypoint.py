#!/usr/bin/env python3
"""
Command-line entry point for the FTP client.

    ftpclient HOST [--port N] [--passive] [--debug] [--active-address IP]
    ftpclient --ui [--ui-port N]

The first form runs the interactive ``FTP> `` shell against HOST; the second
starts the Streamlit front end.
"""

import argparse
import logging
import os
import subprocess
import sys

from ftpclient.config import ClientConfig, configure_logging
from ftpclient.core.commands import ClientCommandHandler
from ftpclient.modes import TransferMode
from ftpclient.ui.shell import FtpShell

logger = logging.getLogger("ftpclient")

APP_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "ui", "app.py")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ftpclient", description="Interactive FTP client")
    parser.add_argument("host", nargs="?", help="FTP server to connect to")
    parser.add_argument("--port", type=int, default=None, help="Control port (default 21)")
    parser.add_argument("--passive", action="store_true", default=None,
                        help="Start in passive mode instead of active")
    parser.add_argument("--debug", action="store_true", default=None, help="Start with debug logging on")
    parser.add_argument("--active-address", default=None,
                        help="IPv4 address to advertise in PORT instead of the detected one")
    parser.add_argument("--log-level", default=None, help="Base logging level (default WARNING)")
    parser.add_argument("--ui", action="store_true", help="Start the Streamlit UI instead of the shell")
    parser.add_argument("--ui-host", default="0.0.0.0", help="Address the UI binds to")
    parser.add_argument("--ui-port", type=int, default=8501, help="Port the UI listens on")
    return parser


def start_streamlit_client(host: str = '0.0.0.0', port: int = 8501):
    """Replace this process with `streamlit run` on the bundled app."""
    logger.info(f"Starting Streamlit FTP Client UI on {host}:{port}...")

    cmd = [
        'streamlit',
        'run',
        APP_PATH,
        f'--server.port={port}',
        f'--server.address={host}',
        '--client.showErrorDetails=true'
    ]
    os.environ['STREAMLIT_TELEMETRY_ENABLED'] = 'false'

    try:
        os.execvp(cmd[0], cmd)
    except OSError as e:
        logger.error(f"Failed to exec Streamlit: {e}")
        # Fallback to subprocess.run for better diagnostics
        try:
            subprocess.run(cmd, check=True)
        except subprocess.CalledProcessError as e2:
            logger.error(f"Streamlit exited with error code {e2.returncode}")
            sys.exit(e2.returncode)
        except OSError as e2:
            logger.error(f"Failed to start Streamlit: {e2}")
            sys.exit(1)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    mode = None
    if args.passive:
        mode = TransferMode.PASSIVE
    config = ClientConfig.from_env(
        host=(args.host or "").strip() or None,
        port=args.port,
        mode=mode,
        debug=args.debug,
        active_address=args.active_address,
        log_level=args.log_level,
    )
    configure_logging(config)

    if args.ui:
        start_streamlit_client(args.ui_host, args.ui_port)
        return 0

    if not config.host:
        print("Usage: ftpclient server", file=sys.stderr)
        return 1

    logger.debug(f"Starting shell for {config.host}:{config.port} in {config.mode.value} mode")
    handler = ClientCommandHandler.from_config(config)
    try:
        FtpShell(handler).begin()
    except KeyboardInterrupt:
        print()
        handler.close()
    return 0


if __name__ == '__main__':
    sys.exit(main())
