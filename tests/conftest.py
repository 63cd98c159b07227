"""Shared fakes for the tunnel engine tests."""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from wgnexus.settings import AppSettings, LogOutput
from wgnexus.tunnel.command_factory import TunnelCommandFactory
from wgnexus.tunnel.keygen import Keypair
from wgnexus.tunnel.models import Interface, Peer, Tunnel, WireguardConfig

WG_SHOW_OUTPUT = "interface: wg0\n  public key: cHVibGljLWtleQ==\n  listening port: 51820\n"


class FakeRunner:
    """Stands in for run_with_timeout, recording every command it is given."""

    def __init__(self, status=(0, WG_SHOW_OUTPUT), quick=None):
        self.status = status
        self.quick = dict(quick or {})
        self.calls: list[tuple[list[str], float]] = []

    def __call__(self, cmd, timeout):
        self.calls.append((list(cmd), timeout))
        if cmd[:2] == ["wg", "show"]:
            return self.status
        if cmd[0] == "wg-quick":
            return self.quick.get(cmd[1], (0, ""))
        raise AssertionError(f"unexpected command {cmd}")

    @property
    def quick_actions(self) -> list[str]:
        return [cmd[1] for cmd, _ in self.calls if cmd[0] == "wg-quick"]


class FakeObserver:
    def __init__(self, up: bool = True):
        self.up = up
        self.queried: list[str] = []

    def is_interface_up(self, name: str) -> bool:
        self.queried.append(name)
        return self.up


class FakeKeys:
    def __init__(self):
        self.calls = 0

    def generate_keypair(self) -> Keypair:
        self.calls += 1
        return Keypair(private_key="cHJpdmF0ZS1rZXk=", public_key="cHVibGljLWtleQ==")


def make_tunnel(name: str = "wg0", endpoints=("192.0.2.10:51820",), active: bool = False) -> Tunnel:
    config = WireguardConfig(
        interface=Interface(name=name, address="10.0.0.1/24", listen_port=51820, private_key="cHJpdmF0ZS1rZXk="),
        peers=[Peer(allowed_ips="10.0.0.2/32", endpoint=e, public_key="cGVlcg==") for e in endpoints],
    )
    return Tunnel(name=name, config=config, active=active)


def write_script(path: Path, body: str) -> str:
    """Write an executable /bin/sh script and return its path."""
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


@pytest.fixture
def commands() -> TunnelCommandFactory:
    return TunnelCommandFactory()


@pytest.fixture
def settings(tmp_path: Path) -> AppSettings:
    tunnels = tmp_path / "wireguard"
    tunnels.mkdir()
    return AppSettings(tunnels_path=tunnels, log_output=LogOutput.STDOUT, log_file=tmp_path / "wg.log")


@pytest.fixture
def posix_only():
    if os.name != "posix":
        pytest.skip("requires a POSIX shell")
