"""Custom exceptions for WireGuard tunnel management."""

from typing import Optional


class TunnelError(Exception):
    """Base exception for tunnel-related errors."""
    pass


class ConfigurationError(TunnelError):
    """Raised when there's an issue with settings or a tunnel configuration file"""
    pass


class ProcessError(TunnelError):
    """Raised when an external process cannot be spawned, killed or waited on"""
    pass


class ObserverError(TunnelError):
    """Raised when the OS interface table cannot be queried"""
    pass


class InvalidEndpoint(TunnelError):
    """Raised when a peer declares a malformed remote endpoint"""

    def __init__(self, peer_index: int, endpoint: str):
        self.peer_index = peer_index
        self.endpoint = endpoint
        super().__init__(
            f"Invalid endpoint format for peer #{peer_index + 1}: {endpoint!r} "
            "(expected ip:port or [ipv6]:port)"
        )


class ToggleFailed(TunnelError):
    """Raised when wg-quick does not exit successfully"""

    def __init__(self, action: str, tunnel: str, returncode: Optional[int] = None):
        self.action = action
        self.tunnel = tunnel
        self.returncode = returncode
        super().__init__(f"Failed to execute wg-quick {action} {tunnel} (exit code: {returncode})")


class KeyGenError(TunnelError):
    """Raised when wg genkey / wg pubkey produce no usable key"""
    pass


class GenerationInputError(TunnelError):
    """Raised when a tunnel generation field is missing or cannot be parsed"""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class TunnelNotFound(TunnelError):
    """Raised when a tunnel name is not under management"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tunnel: {name}")


class TunnelExists(TunnelError):
    """Raised when a generated tunnel would replace a managed tunnel or its file"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Tunnel {name} already exists")
