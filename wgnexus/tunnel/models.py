"""Data models for WireGuard tunnel management."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .detector import TunnelStateDetector


class TunnelClassification(Enum):
    """Reconciled tunnel state"""
    ACTIVE = "active"              # wg reports a session and the link is up/running
    LINK_ANOMALY = "link_anomaly"  # wg reports a session but the link is not up
    INACTIVE = "inactive"          # wg reports no session


class ToggleAction(Enum):
    """wg-quick action"""
    UP = "up"
    DOWN = "down"


@dataclass
class Interface:
    """[Interface] section of a tunnel configuration"""
    name: Optional[str] = None
    address: Optional[str] = None
    listen_port: Optional[int] = None
    public_key: Optional[str] = None
    private_key: Optional[str] = None
    extra: Dict[str, str] = field(default_factory=dict)


@dataclass
class Peer:
    """[Peer] section of a tunnel configuration"""
    allowed_ips: Optional[str] = None
    endpoint: Optional[str] = None
    public_key: Optional[str] = None
    extra: Dict[str, str] = field(default_factory=dict)


@dataclass
class WireguardConfig:
    """Interface plus ordered peers"""
    interface: Interface = field(default_factory=Interface)
    peers: List[Peer] = field(default_factory=list)


@dataclass
class Tunnel:
    """A managed tunnel.

    ``active`` is a cached flag for presentation only; the toggle engine always
    re-detects the real state before acting.
    """
    name: str
    config: WireguardConfig
    active: bool = False

    @classmethod
    def from_config(cls, config: WireguardConfig, detector: 'TunnelStateDetector') -> 'Tunnel':
        name = config.interface.name or "unknown"
        tunnel = cls(name=name, config=config)
        tunnel.refresh(detector)
        return tunnel

    def refresh(self, detector: 'TunnelStateDetector') -> TunnelClassification:
        """Re-detect state and update the cached flag."""
        state = detector.classify(self.name)
        self.active = state is TunnelClassification.ACTIVE
        return state
