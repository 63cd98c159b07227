"""Command templates and builders for WireGuard tooling."""

import re
from typing import List
from dataclasses import dataclass, field

from .exceptions import TunnelError


class CommandError(TunnelError):
    """Base exception for command-related errors."""
    pass


class ValidationError(CommandError):
    """Raised when command validation fails."""
    pass


# Linux IFNAMSIZ is 16 including the terminating NUL
MAX_INTERFACE_NAME = 15
_INTERFACE_NAME = re.compile(r"^[^\s/:-][^\s/:]*$")


def validate_interface_name(name: str) -> str:
    """Check that a tunnel name is usable as a Linux interface name."""
    if not name:
        raise ValidationError("Interface name cannot be empty")
    if len(name) > MAX_INTERFACE_NAME:
        raise ValidationError(
            f"Interface name '{name}' is longer than {MAX_INTERFACE_NAME} characters"
        )
    if name in (".", "..") or not _INTERFACE_NAME.match(name):
        raise ValidationError(f"Invalid interface name '{name}'")
    return name


@dataclass(frozen=True)
class Command:
    """Immutable command builder with validation."""
    base_cmd: List[str] = field(default_factory=list)
    use_sudo: bool = False

    def _validate_executable(self) -> None:
        """Validate that base command exists."""
        if not self.base_cmd or not self.base_cmd[0]:
            raise ValidationError("Command cannot be empty")

    @classmethod
    def from_str(cls, cmd: str, use_sudo: bool = False) -> 'Command':
        """Create command from string."""
        command = cls(cmd.split(), use_sudo)
        command._validate_executable()
        return command

    def with_arg(self, arg: str) -> 'Command':
        """Add single argument."""
        return Command(self.base_cmd + [arg], self.use_sudo)

    def with_args(self, *args: str) -> 'Command':
        """Add multiple arguments."""
        return Command(self.base_cmd + list(args), self.use_sudo)

    def with_interface(self, name: str) -> 'Command':
        """Add an interface name after validating it."""
        return self.with_arg(validate_interface_name(name))

    def as_sudo(self) -> 'Command':
        """Mark command to be executed with sudo."""
        return Command(self.base_cmd, True)

    def build(self) -> List[str]:
        """Get final command list."""
        self._validate_executable()
        return ["sudo", "-n"] + self.base_cmd if self.use_sudo else list(self.base_cmd)


WG = Command.from_str("wg")
WG_QUICK = Command.from_str("wg-quick")
