"""Unit tests for wgnexus.tunnel.toggle."""

from __future__ import annotations

import pytest

from conftest import FakeObserver, FakeRunner, make_tunnel
from wgnexus.tunnel.detector import TunnelStateDetector
from wgnexus.tunnel.exceptions import InvalidEndpoint, ToggleFailed
from wgnexus.tunnel.generator import PLACEHOLDER_ENDPOINT
from wgnexus.tunnel.toggle import TOGGLE_TIMEOUT, TunnelToggler

INACTIVE = (1, "")


def _toggler(commands, runner, link_up=True) -> TunnelToggler:
    detector = TunnelStateDetector(commands, FakeObserver(up=link_up), runner)
    return TunnelToggler(commands, detector, runner)


# ---------------------------------------------------------------------------
# transitions
# ---------------------------------------------------------------------------

def test_inactive_brings_up(commands) -> None:
    runner = FakeRunner(status=INACTIVE)
    tunnel = make_tunnel()

    assert _toggler(commands, runner).try_toggle(tunnel) is True
    assert tunnel.active is True
    assert runner.quick_actions == ["up"]


def test_active_tears_down(commands) -> None:
    runner = FakeRunner()
    tunnel = make_tunnel(active=True)

    assert _toggler(commands, runner, link_up=True).try_toggle(tunnel) is False
    assert tunnel.active is False
    assert runner.quick_actions == ["down"]


def test_link_anomaly_resets_down_then_up(commands) -> None:
    runner = FakeRunner()
    tunnel = make_tunnel(active=False)

    assert _toggler(commands, runner, link_up=False).try_toggle(tunnel) is True
    assert tunnel.active is True
    assert runner.quick_actions == ["down", "up"]


def test_detection_precedes_actions_and_uses_toggle_timeout(commands) -> None:
    runner = FakeRunner(status=INACTIVE)
    _toggler(commands, runner).try_toggle(make_tunnel())

    assert [cmd for cmd, _ in runner.calls] == [["wg", "show", "wg0"], ["wg-quick", "up", "wg0"]]
    assert runner.calls[1][1] == TOGGLE_TIMEOUT


def test_flag_follows_detected_state_not_stale_cache(commands) -> None:
    runner = FakeRunner(status=INACTIVE)
    tunnel = make_tunnel(active=True)

    assert _toggler(commands, runner).try_toggle(tunnel) is True
    assert runner.quick_actions == ["up"]


# ---------------------------------------------------------------------------
# failures
# ---------------------------------------------------------------------------

def test_failed_tear_down_skips_bring_up(commands) -> None:
    runner = FakeRunner(quick={"down": (1, "")})
    tunnel = make_tunnel(active=True)

    with pytest.raises(ToggleFailed) as exc_info:
        _toggler(commands, runner, link_up=False).try_toggle(tunnel)

    assert exc_info.value.action == "down"
    assert exc_info.value.returncode == 1
    assert runner.quick_actions == ["down"]
    assert tunnel.active is True


def test_failed_bring_up_after_reset_is_not_rolled_back(commands) -> None:
    runner = FakeRunner(quick={"up": (1, "")})
    tunnel = make_tunnel()

    with pytest.raises(ToggleFailed, match="wg-quick up wg0"):
        _toggler(commands, runner, link_up=False).try_toggle(tunnel)

    assert runner.quick_actions == ["down", "up"]
    assert tunnel.active is False


def test_timed_out_bring_up_fails(commands) -> None:
    runner = FakeRunner(status=INACTIVE, quick={"up": (None, "")})
    tunnel = make_tunnel()

    with pytest.raises(ToggleFailed) as exc_info:
        _toggler(commands, runner).try_toggle(tunnel)

    assert exc_info.value.returncode is None
    assert tunnel.active is False


# ---------------------------------------------------------------------------
# endpoint precondition
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("status, link_up", [(INACTIVE, True), ((0, "interface: wg0"), False)])
def test_malformed_endpoint_blocks_activation(commands, status, link_up) -> None:
    runner = FakeRunner(status=status)
    tunnel = make_tunnel(endpoints=("192.0.2.10:51820", "not-an-address"))

    with pytest.raises(InvalidEndpoint) as exc_info:
        _toggler(commands, runner, link_up=link_up).try_toggle(tunnel)

    assert exc_info.value.endpoint == "not-an-address"
    assert runner.quick_actions == []
    assert tunnel.active is False


def test_placeholder_peers_block_activation(commands) -> None:
    runner = FakeRunner(status=INACTIVE)
    tunnel = make_tunnel(endpoints=(PLACEHOLDER_ENDPOINT,))

    with pytest.raises(InvalidEndpoint):
        _toggler(commands, runner).try_toggle(tunnel)
    assert runner.quick_actions == []


def test_malformed_endpoint_does_not_block_tear_down(commands) -> None:
    runner = FakeRunner()
    tunnel = make_tunnel(endpoints=("not-an-address",), active=True)

    assert _toggler(commands, runner, link_up=True).try_toggle(tunnel) is False
    assert runner.quick_actions == ["down"]


def test_peer_without_endpoint_can_activate(commands) -> None:
    runner = FakeRunner(status=INACTIVE)
    tunnel = make_tunnel(endpoints=(None,))

    assert _toggler(commands, runner).try_toggle(tunnel) is True
