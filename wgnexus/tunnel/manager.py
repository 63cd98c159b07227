"""WireGuard tunnel management implementation."""

import threading
from typing import Dict, List, Mapping, Optional, Set

from .command_factory import TunnelCommandFactory
from .commands import validate_interface_name
from .detector import TunnelStateDetector
from .exceptions import TunnelError, TunnelExists, TunnelNotFound
from .generator import GenerationSettings, generate_configuration
from .keygen import KeyGenerator
from .link import LinkStateObserver
from .models import Tunnel, TunnelClassification
from .persistence import (
    delete_configuration,
    load_existing_configurations,
    save_configuration,
)
from .toggle import TunnelToggler
from .utils import CommandRunner, run_with_timeout
from ..logging_utility import logger
from ..settings import AppSettings


class TunnelManager:
    """Registry of the tunnels shown to the user.

    Toggles of one tunnel name are serialized here; the engine underneath does
    no locking of its own.
    """

    def __init__(
            self,
            settings: AppSettings,
            observer: Optional[LinkStateObserver] = None,
            runner: CommandRunner = run_with_timeout,
            keys: Optional[KeyGenerator] = None,
    ):
        self.settings = settings
        self.commands = TunnelCommandFactory.from_paths(
            settings.wg_path, settings.wg_quick_path, use_sudo=settings.use_sudo
        )
        self.detector = TunnelStateDetector(
            self.commands, observer or LinkStateObserver(), runner, settings.status_timeout
        )
        self.toggler = TunnelToggler(self.commands, self.detector, runner, settings.toggle_timeout)
        self.keys = keys or KeyGenerator(self.commands, settings.keygen_timeout)
        self.tunnels: Dict[str, Tunnel] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._generating: Set[str] = set()

    def _lock_for(self, name: str) -> threading.Lock:
        with self._registry_lock:
            return self._locks.setdefault(name, threading.Lock())

    def _add(self, tunnel: Tunnel) -> Tunnel:
        with self._registry_lock:
            if tunnel.name in self.tunnels:
                logger.warning(f"Replacing tunnel {tunnel.name}")
            self.tunnels[tunnel.name] = tunnel
        return tunnel

    def load_tunnels(self) -> List[Tunnel]:
        """Load configurations from disk and detect each tunnel's state."""
        for config in load_existing_configurations(self.settings.tunnels_path):
            try:
                tunnel = Tunnel.from_config(config, self.detector)
            except TunnelError as e:
                logger.error(f"Skipping tunnel {config.interface.name}: {e}")
                continue
            self._add(tunnel)
        return self.list_tunnels()

    def list_tunnels(self) -> List[Tunnel]:
        with self._registry_lock:
            return sorted(self.tunnels.values(), key=lambda t: t.name)

    def get(self, name: str) -> Tunnel:
        with self._registry_lock:
            tunnel = self.tunnels.get(name)
        if tunnel is None:
            raise TunnelNotFound(name)
        return tunnel

    def status(self, name: str) -> TunnelClassification:
        """Detect the current state and refresh the cached flag."""
        tunnel = self.get(name)
        with self._lock_for(name):
            return tunnel.refresh(self.detector)

    def toggle(self, name: str) -> bool:
        tunnel = self.get(name)
        with self._lock_for(name):
            return self.toggler.try_toggle(tunnel)

    def generate(self, fields: Mapping[str, Optional[str]]) -> Tunnel:
        """
        Generate, save and start managing a new tunnel.

        Args:
            fields: Labelled generation fields

        Returns:
            The new (inactive) tunnel
        """
        generation = GenerationSettings.from_fields(fields)
        name = generation.tunnel_iface_name
        validate_interface_name(name)
        with self._registry_lock:
            if name in self.tunnels or name in self._generating:
                raise TunnelExists(name)
            self._generating.add(name)

        try:
            config = generate_configuration(generation, self.keys)
            save_configuration(config, self.settings.tunnels_path)
            tunnel = Tunnel(name=name, config=config, active=False)
            with self._registry_lock:
                self.tunnels[name] = tunnel
        finally:
            with self._registry_lock:
                self._generating.discard(name)
        logger.info(f"Tunnel {name} generated")
        return tunnel

    def remove(self, name: str, delete_file: bool = False) -> Tunnel:
        tunnel = self.get(name)
        with self._lock_for(name):
            with self._registry_lock:
                self.tunnels.pop(name, None)
                self._locks.pop(name, None)
            if delete_file:
                delete_configuration(name, self.settings.tunnels_path)
        logger.info(f"Tunnel {name} removed from management")
        return tunnel
