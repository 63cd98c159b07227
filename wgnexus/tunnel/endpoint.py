"""Peer endpoint validation."""

import ipaddress
import re
from typing import Iterable, Tuple, Union

from .exceptions import InvalidEndpoint
from .models import Peer

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

_PORT = re.compile(r"^[0-9]{1,5}$")


def parse_endpoint(text: str) -> Tuple[IPAddress, int]:
    """
    Parse a socket address: ``a.b.c.d:port`` or ``[v6]:port``.

    Hostnames are not accepted.

    Raises:
        ValueError: if the text is not a socket address
    """
    if text.startswith("["):
        host, sep, port = text[1:].partition("]:")
        if not sep or "%" in host:
            raise ValueError(f"Malformed IPv6 endpoint: {text!r}")
        address: IPAddress = ipaddress.IPv6Address(host)
    else:
        host, sep, port = text.rpartition(":")
        if not sep:
            raise ValueError(f"Endpoint has no port: {text!r}")
        address = ipaddress.IPv4Address(host)

    if not _PORT.match(port) or int(port) > 65535:
        raise ValueError(f"Invalid port in endpoint: {text!r}")
    return address, int(port)


def validate_endpoints(peers: Iterable[Peer]) -> None:
    """Raise InvalidEndpoint for the first peer whose declared endpoint is malformed."""
    for index, peer in enumerate(peers):
        if peer.endpoint is None:
            continue
        try:
            parse_endpoint(peer.endpoint)
        except ValueError:
            raise InvalidEndpoint(index, peer.endpoint)
