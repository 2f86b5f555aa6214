"""
Host/port encoding for the PORT command and the 227 PASV reply.

Both use six comma-separated decimal numbers: four IPv4 octets followed by
the high and low byte of the port (port = p1 * 256 + p2).
"""

import ipaddress
import logging
import socket
from typing import Sequence, Tuple, Union

from ftpclient.errors import MalformedAddressError, NoLocalAddressError

logger = logging.getLogger(__name__)

MAX_PORT = 65535

# Noise some servers wrap around the number list
_PASV_NOISE = '().'


def _ipv4(ip: Union[str, Sequence[int]]) -> ipaddress.IPv4Address:
    if not isinstance(ip, str):
        try:
            octets = [int(o) for o in ip]
        except (TypeError, ValueError) as e:
            raise MalformedAddressError(f"Invalid IPv4 octets: {ip!r}") from e
        if len(octets) != 4:
            raise MalformedAddressError(f"IPv4 address needs 4 octets, got {len(octets)}")
        ip = '.'.join(str(o) for o in octets)
    try:
        return ipaddress.IPv4Address(ip)
    except ipaddress.AddressValueError as e:
        raise MalformedAddressError(f"Invalid IPv4 address: {ip!r}") from e


def encode_port(ip: Union[str, Sequence[int]], port: int) -> str:
    """Encode an endpoint as the PORT parameter string 'o1,o2,o3,o4,p1,p2'."""
    address = _ipv4(ip)
    if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= MAX_PORT:
        raise MalformedAddressError(f"Port out of range: {port!r}")

    p1, p2 = port // 256, port % 256
    params = ','.join(str(n) for n in (*address.packed, p1, p2))
    logger.debug(f"PORT parameters for {address}:{port} -> {params}")
    return params


def decode_passive(params: str) -> Tuple[str, int]:
    """Decode 'h1,h2,h3,h4,p1,p2' (optionally wrapped in parentheses) into (ip, port)."""
    cleaned = params.strip().strip(_PASV_NOISE).strip()
    parts = [p.strip() for p in cleaned.split(',')]
    if len(parts) != 6:
        raise MalformedAddressError(f"Expected 6 numbers in '{params}', got {len(parts)}")

    try:
        numbers = [int(p) for p in parts]
    except ValueError as e:
        raise MalformedAddressError(f"Non-numeric value in '{params}'") from e

    if any(not 0 <= n <= 255 for n in numbers):
        raise MalformedAddressError(f"Value out of byte range in '{params}'")

    ip = '.'.join(str(n) for n in numbers[:4])
    port = numbers[4] * 256 + numbers[5]
    logger.debug(f"PASV parsed: {ip}:{port}")
    return ip, port


def parse_pasv_response(message: str) -> Tuple[str, int]:
    """Extract and decode the endpoint of a '227 ... (h1,h2,h3,h4,p1,p2)' reply."""
    end = message.rfind(')')
    start = message.rfind('(', 0, end) if end != -1 else -1
    if start != -1:
        params = message[start + 1:end]
    else:
        # Some servers drop the parentheses; the list is then the last word
        words = message.split()
        if not words:
            raise MalformedAddressError("Empty PASV response")
        params = words[-1]
    return decode_passive(params)


def find_local_ipv4() -> str:
    """Return the first non-loopback IPv4 address bound to this host."""
    hostname = socket.gethostname()
    try:
        infos = socket.getaddrinfo(hostname, None, socket.AF_INET, socket.SOCK_STREAM)
    except socket.gaierror as e:
        raise NoLocalAddressError(f"Could not resolve local host name '{hostname}': {e}") from e

    for info in infos:
        candidate = info[4][0]
        if not ipaddress.IPv4Address(candidate).is_loopback:
            logger.debug(f"Local IPv4 address: {candidate}")
            return candidate

    raise NoLocalAddressError(f"No non-loopback IPv4 address found for '{hostname}'")
