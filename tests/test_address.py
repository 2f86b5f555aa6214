import socket

import pytest

from ftpclient.core import address
from ftpclient.core.address import decode_passive, encode_port, find_local_ipv4, parse_pasv_response
from ftpclient.errors import MalformedAddressError, NoLocalAddressError


def test_encode_port_boundaries():
    assert encode_port("192.168.1.2", 0) == "192,168,1,2,0,0"
    assert encode_port("192.168.1.2", 65535) == "192,168,1,2,255,255"
    assert encode_port("192.168.1.2", 256) == "192,168,1,2,1,0"


def test_encode_port_accepts_octet_sequence():
    assert encode_port((10, 0, 0, 5), 1025) == "10,0,0,5,4,1"


@pytest.mark.parametrize("ip,port", [
    ("10.0.0.256", 21),
    ("not-an-ip", 21),
    ((1, 2, 3), 21),
    ("10.0.0.1", -1),
    ("10.0.0.1", 65536),
    ("10.0.0.1", "21"),
])
def test_encode_port_rejects_bad_input(ip, port):
    with pytest.raises(MalformedAddressError):
        encode_port(ip, port)


def test_decode_passive():
    assert decode_passive("127,0,0,1,200,50") == ("127.0.0.1", 51250)


def test_decode_passive_strips_noise():
    assert decode_passive("(10,0,0,5,4,1).") == ("10.0.0.5", 1025)
    assert decode_passive(" 10, 0, 0, 5, 4, 1 ") == ("10.0.0.5", 1025)


@pytest.mark.parametrize("params", [
    "1,2,3,4,5",
    "1,2,3,4,5,6,7",
    "a,b,c,d,e,f",
    "1,2,3,4,5,256",
    "",
])
def test_decode_passive_rejects_malformed(params):
    with pytest.raises(MalformedAddressError):
        decode_passive(params)


def test_malformed_address_is_a_value_error():
    with pytest.raises(ValueError):
        decode_passive("nonsense")


@pytest.mark.parametrize("ip,port", [
    ("127.0.0.1", 21),
    ("10.0.0.5", 1025),
    ("192.168.100.200", 51250),
    ("0.0.0.0", 0),
    ("255.255.255.255", 65535),
])
def test_round_trip(ip, port):
    assert decode_passive(encode_port(ip, port)) == (ip, port)


def test_parse_pasv_response():
    assert parse_pasv_response("227 Entering Passive Mode (127,0,0,1,200,50)") == ("127.0.0.1", 51250)


def test_parse_pasv_response_ignores_surrounding_text():
    reply = "227 Entering Passive Mode (see RFC 959) (10,0,0,5,4,1)."
    assert parse_pasv_response(reply) == ("10.0.0.5", 1025)


def test_parse_pasv_response_without_parentheses():
    assert parse_pasv_response("227 Entering Passive Mode 10,0,0,5,4,1") == ("10.0.0.5", 1025)


def test_parse_pasv_response_malformed():
    with pytest.raises(MalformedAddressError):
        parse_pasv_response("227 Entering Passive Mode (10,0,0,5)")


def _addrinfo(*ips):
    return [(socket.AF_INET, socket.SOCK_STREAM, 6, "", (ip, 0)) for ip in ips]


def test_find_local_ipv4_skips_loopback(monkeypatch):
    monkeypatch.setattr(address.socket, "getaddrinfo",
                        lambda *args: _addrinfo("127.0.1.1", "192.168.0.10", "10.0.0.3"))
    assert find_local_ipv4() == "192.168.0.10"


def test_find_local_ipv4_only_loopback(monkeypatch):
    monkeypatch.setattr(address.socket, "getaddrinfo", lambda *args: _addrinfo("127.0.0.1"))
    with pytest.raises(NoLocalAddressError):
        find_local_ipv4()


def test_find_local_ipv4_unresolvable_host(monkeypatch):
    def fail(*args):
        raise socket.gaierror("no such host")

    monkeypatch.setattr(address.socket, "getaddrinfo", fail)
    with pytest.raises(NoLocalAddressError):
        find_local_ipv4()
