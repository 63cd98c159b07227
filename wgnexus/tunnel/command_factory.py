"""Factory for creating WireGuard-related commands."""

from typing import List

from .commands import Command, WG, WG_QUICK
from .models import ToggleAction


class TunnelCommandFactory:
    """Factory for creating tunnel management commands.

    Status and bring-up/tear-down commands are privileged and get the
    ``sudo`` prefix when ``use_sudo`` is set; key generation never does.
    """

    def __init__(self, wg: Command = WG, wg_quick: Command = WG_QUICK, use_sudo: bool = False):
        self.wg = wg
        self.wg_quick = wg_quick
        self.use_sudo = use_sudo

    @classmethod
    def from_paths(cls, wg_path: str, wg_quick_path: str, use_sudo: bool = False) -> 'TunnelCommandFactory':
        return cls(Command.from_str(wg_path), Command.from_str(wg_quick_path), use_sudo)

    def _privileged(self, cmd: Command) -> List[str]:
        return (cmd.as_sudo() if self.use_sudo else cmd).build()

    def show_status(self, interface: str) -> List[str]:
        """Create `wg show <interface>` command."""
        return self._privileged(self.wg.with_arg("show").with_interface(interface))

    def quick(self, action: ToggleAction, interface: str) -> List[str]:
        """Create `wg-quick up|down <interface>` command."""
        return self._privileged(self.wg_quick.with_arg(action.value).with_interface(interface))

    def genkey(self) -> List[str]:
        """Create private key generation command."""
        return self.wg.with_arg("genkey").build()

    def pubkey(self) -> List[str]:
        """Create public key derivation command."""
        return self.wg.with_arg("pubkey").build()
