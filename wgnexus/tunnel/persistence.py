"""Reading and writing wg-quick configuration files."""

import os
import re
from pathlib import Path
from typing import Dict, List, Union

from .commands import CommandError, validate_interface_name
from .exceptions import ConfigurationError, TunnelExists
from .models import Interface, Peer, WireguardConfig
from ..logging_utility import logger

CONFIG_SUFFIX = ".conf"

INTERFACE_KEYS = {
    "address": "address",
    "listenport": "listen_port",
    "privatekey": "private_key",
}
PEER_KEYS = {
    "publickey": "public_key",
    "allowedips": "allowed_ips",
    "endpoint": "endpoint",
}
# joined with ", " when repeated, as wg-quick accepts
LIST_KEYS = {"address", "allowed_ips", "dns"}

_PUBLIC_KEY_COMMENT = re.compile(r"^#\s*PublicKey\s*=\s*(\S+)\s*$", re.IGNORECASE)


def _assign(section: Union[Interface, Peer], keys: Dict[str, str], key: str, value: str, where: str) -> None:
    attr = keys.get(key.lower())
    if attr is None:
        previous = section.extra.get(key)
        section.extra[key] = f"{previous}, {value}" if previous and key.lower() in LIST_KEYS else value
        return

    if attr == "listen_port":
        try:
            section.listen_port = int(value)
        except ValueError:
            raise ConfigurationError(f"{where}: invalid ListenPort '{value}'")
        return

    previous = getattr(section, attr)
    if previous and attr in LIST_KEYS:
        value = f"{previous}, {value}"
    setattr(section, attr, value)


def parse_config(text: str, source: str = "<string>") -> WireguardConfig:
    """
    Parse the wg-quick INI dialect.

    Args:
        text: File content
        source: Name used in error messages

    Returns:
        WireguardConfig (interface name is left unset)
    """
    config = WireguardConfig()
    section: Union[Interface, Peer, None] = None
    keys: Dict[str, str] = {}

    for lineno, raw in enumerate(text.splitlines(), start=1):
        where = f"{source}:{lineno}"
        stripped = raw.strip()

        match = _PUBLIC_KEY_COMMENT.match(stripped)
        if match and section is config.interface:
            config.interface.public_key = match.group(1)
            continue

        line = stripped.split("#", 1)[0].strip()
        if not line:
            continue

        if line.startswith("["):
            header = line.lower()
            if header == "[interface]":
                section, keys = config.interface, INTERFACE_KEYS
            elif header == "[peer]":
                section, keys = Peer(), PEER_KEYS
                config.peers.append(section)
            else:
                raise ConfigurationError(f"{where}: unknown section {line}")
            continue

        if section is None:
            raise ConfigurationError(f"{where}: key outside of a section")
        key, sep, value = line.partition("=")
        if not sep or not key.strip():
            raise ConfigurationError(f"{where}: expected 'Key = Value'")
        _assign(section, keys, key.strip(), value.strip(), where)

    return config


def render_config(config: WireguardConfig) -> str:
    """Serialize a configuration; the inverse of parse_config."""
    iface = config.interface
    lines = ["[Interface]"]
    if iface.public_key:
        lines.append(f"# PublicKey = {iface.public_key}")
    if iface.address:
        lines.append(f"Address = {iface.address}")
    if iface.listen_port is not None:
        lines.append(f"ListenPort = {iface.listen_port}")
    if iface.private_key:
        lines.append(f"PrivateKey = {iface.private_key}")
    lines.extend(f"{key} = {value}" for key, value in iface.extra.items())

    for peer in config.peers:
        lines.extend(["", "[Peer]"])
        if peer.public_key:
            lines.append(f"PublicKey = {peer.public_key}")
        if peer.allowed_ips:
            lines.append(f"AllowedIPs = {peer.allowed_ips}")
        if peer.endpoint:
            lines.append(f"Endpoint = {peer.endpoint}")
        lines.extend(f"{key} = {value}" for key, value in peer.extra.items())

    return "\n".join(lines) + "\n"


def config_path(tunnels_path: Path, name: str) -> Path:
    try:
        validate_interface_name(name)
    except CommandError as e:
        raise ConfigurationError(str(e)) from e
    return Path(tunnels_path) / f"{name}{CONFIG_SUFFIX}"


def load_existing_configurations(tunnels_path: Path) -> List[WireguardConfig]:
    """
    Load every *.conf file in the tunnels directory.

    Files that cannot be parsed are logged and skipped.

    Returns:
        Configurations named after their file stem, sorted by name
    """
    tunnels_path = Path(tunnels_path)
    try:
        entries = sorted(p for p in tunnels_path.iterdir() if p.suffix == CONFIG_SUFFIX and p.is_file())
    except OSError as e:
        raise ConfigurationError(f"Could not list {tunnels_path}: {e}") from e

    configs = []
    for path in entries:
        try:
            config = parse_config(path.read_text(encoding="utf-8"), source=str(path))
        except (OSError, UnicodeDecodeError, ConfigurationError) as e:
            logger.error(f"Skipping tunnel configuration {path}: {e}")
            continue
        if config.interface.name is None:
            config.interface.name = path.stem
        configs.append(config)

    logger.info(f"Loaded {len(configs)} tunnel configuration(s) from {tunnels_path}")
    return configs


def save_configuration(config: WireguardConfig, tunnels_path: Path) -> Path:
    """Write the configuration to <tunnels_path>/<name>.conf with mode 0600.

    An existing file is never overwritten; it may hold the only copy of a
    private key.
    """
    if not config.interface.name:
        raise ConfigurationError("Cannot save a configuration without an interface name")
    path = config_path(tunnels_path, config.interface.name)
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(render_config(config))
    except FileExistsError:
        raise TunnelExists(config.interface.name)
    except OSError as e:
        raise ConfigurationError(f"Could not write {path}: {e}") from e
    logger.info(f"Saved tunnel configuration {path}")
    return path


def delete_configuration(name: str, tunnels_path: Path) -> None:
    path = config_path(tunnels_path, name)
    try:
        path.unlink()
    except FileNotFoundError:
        logger.warning(f"Tunnel configuration {path} already removed")
    except OSError as e:
        raise ConfigurationError(f"Could not delete {path}: {e}") from e
    else:
        logger.info(f"Deleted tunnel configuration {path}")
