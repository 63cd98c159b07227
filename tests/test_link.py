"""Unit tests for wgnexus.tunnel.link."""

from __future__ import annotations

import sys
from collections import namedtuple

import psutil
import pytest

from wgnexus.tunnel import link
from wgnexus.tunnel.exceptions import ObserverError
from wgnexus.tunnel.link import LinkStateObserver

snicstats = namedtuple("snicstats", ["isup", "duplex", "speed", "mtu", "flags"])


def _stats(**flags_by_name: str):
    return {name: snicstats(True, 0, 0, 1420, flags) for name, flags in flags_by_name.items()}


@pytest.fixture
def fake_stats(monkeypatch):
    def install(stats):
        monkeypatch.setattr(link.psutil, "net_if_stats", lambda: stats)
    return install


def test_up_and_running(fake_stats) -> None:
    fake_stats(_stats(wg0="up,pointopoint,running,noarp"))
    assert LinkStateObserver().is_interface_up("wg0") is True


def test_up_but_not_running(fake_stats) -> None:
    fake_stats(_stats(wg0="up,pointopoint,noarp"))
    assert LinkStateObserver().is_interface_up("wg0") is False


def test_running_but_administratively_down(fake_stats) -> None:
    fake_stats(_stats(wg0="pointopoint,running"))
    assert LinkStateObserver().is_interface_up("wg0") is False


def test_missing_interface_is_not_an_error(fake_stats) -> None:
    fake_stats(_stats(eth0="up,broadcast,running,multicast"))
    assert LinkStateObserver().is_interface_up("wg0") is False


def test_exact_name_match(fake_stats) -> None:
    fake_stats(_stats(wg01="up,running"))
    assert LinkStateObserver().is_interface_up("wg0") is False


def test_empty_flags(fake_stats) -> None:
    fake_stats(_stats(wg0=""))
    assert LinkStateObserver().is_interface_up("wg0") is False


def test_enumeration_failure_raises_observer_error(monkeypatch) -> None:
    def boom():
        raise PermissionError("denied")

    monkeypatch.setattr(link.psutil, "net_if_stats", boom)
    with pytest.raises(ObserverError, match="Failed to get interfaces"):
        LinkStateObserver().is_interface_up("wg0")


@pytest.mark.skipif(not sys.platform.startswith("linux"), reason="loopback is named 'lo' on Linux")
def test_loopback_is_up() -> None:
    if "lo" not in psutil.net_if_stats():
        pytest.skip("no loopback interface in this environment")
    assert LinkStateObserver().is_interface_up("lo") is True
