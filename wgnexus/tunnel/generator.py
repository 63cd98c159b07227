"""New tunnel configuration generation."""

import ipaddress
import re
from dataclasses import dataclass
from typing import Mapping, Optional, Union

from .exceptions import GenerationInputError
from .keygen import KeyGenerator
from .models import Interface, Peer, WireguardConfig
from ..logging_utility import logger

NAME_FIELD = "Tunnel interface name"
ADDRESS_FIELD = "Tunnel interface ip"
PORT_FIELD = "Listen Port [default:51820]"
PEERS_FIELD = "Number of Peers [default:1]"

GENERATION_FIELDS = (NAME_FIELD, ADDRESS_FIELD, PORT_FIELD, PEERS_FIELD)

PLACEHOLDER_ALLOWED_IPS = "ip/netmask"
PLACEHOLDER_ENDPOINT = "<peer public ip>:51820"

_UNSIGNED = re.compile(r"^\+?[0-9]+$")


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_unsigned(field: str, raw: str, maximum: Optional[int] = None) -> int:
    value = raw.strip()
    if not _UNSIGNED.match(value) or (maximum is not None and int(value) > maximum):
        raise GenerationInputError(field, f"Could not parse '{field}'")
    return int(value)


@dataclass(frozen=True)
class GenerationSettings:
    """User input for a new tunnel; validated on construction."""
    tunnel_iface_name: str
    tunnel_iface_ip: str
    listen_port: int
    number_of_peers: int

    def __post_init__(self):
        if not self.tunnel_iface_name or not self.tunnel_iface_name.strip():
            raise GenerationInputError(NAME_FIELD, f"'{NAME_FIELD}' is unspecified")
        try:
            if not isinstance(self.tunnel_iface_ip, str) or "/" not in self.tunnel_iface_ip:
                raise ValueError(self.tunnel_iface_ip)
            network = ipaddress.ip_interface(self.tunnel_iface_ip.strip())
        except ValueError:
            raise GenerationInputError(ADDRESS_FIELD, f"Could not parse '{ADDRESS_FIELD}'")
        object.__setattr__(self, "tunnel_iface_ip", network.with_prefixlen)
        object.__setattr__(self, "tunnel_iface_name", self.tunnel_iface_name.strip())

        if not _is_int(self.listen_port) or not 0 <= self.listen_port <= 65535:
            raise GenerationInputError(PORT_FIELD, f"Could not parse '{PORT_FIELD}'")
        if not _is_int(self.number_of_peers) or self.number_of_peers < 0:
            raise GenerationInputError(PEERS_FIELD, f"Could not parse '{PEERS_FIELD}'")

    @classmethod
    def from_fields(cls, fields: Mapping[str, Optional[str]]) -> 'GenerationSettings':
        """
        Build settings from the labelled form fields.

        Unrecognised keys are ignored; every recognised field is required.

        Raises:
            GenerationInputError: naming the first missing or unparseable field
        """
        values = {}
        for field in GENERATION_FIELDS:
            raw = fields.get(field)
            if raw is None or not raw.strip():
                raise GenerationInputError(field, f"'{field}' is unspecified")
            values[field] = raw

        return cls(
            tunnel_iface_name=values[NAME_FIELD],
            tunnel_iface_ip=values[ADDRESS_FIELD],
            listen_port=_parse_unsigned(PORT_FIELD, values[PORT_FIELD], maximum=65535),
            number_of_peers=_parse_unsigned(PEERS_FIELD, values[PEERS_FIELD]),
        )


def generate_configuration(
        settings: Union[GenerationSettings, Mapping[str, Optional[str]]],
        keys: KeyGenerator,
) -> WireguardConfig:
    """
    Generate a new tunnel configuration with a fresh keypair.

    Args:
        settings: Validated settings, or the raw labelled fields
        keys: Key generator used once all input is valid

    Returns:
        WireguardConfig with one placeholder peer per requested peer
    """
    if not isinstance(settings, GenerationSettings):
        settings = GenerationSettings.from_fields(settings)

    keypair = keys.generate_keypair()

    config = WireguardConfig(
        interface=Interface(
            name=settings.tunnel_iface_name,
            address=settings.tunnel_iface_ip,
            listen_port=settings.listen_port,
            public_key=keypair.public_key,
            private_key=keypair.private_key,
        ),
    )
    config.peers.extend(
        Peer(
            allowed_ips=PLACEHOLDER_ALLOWED_IPS,
            endpoint=PLACEHOLDER_ENDPOINT,
            public_key=None,
        )
        for _ in range(settings.number_of_peers)
    )

    logger.info(
        f"Generated configuration for {settings.tunnel_iface_name} "
        f"with {settings.number_of_peers} peer placeholder(s)"
    )
    return config
