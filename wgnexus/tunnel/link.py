"""OS link state of network interfaces."""

import psutil

from .exceptions import ObserverError
from ..logging_utility import logger

REQUIRED_FLAGS = frozenset({"up", "running"})


class LinkStateObserver:
    """Reads interface flags from the OS interface table."""

    def is_interface_up(self, name: str) -> bool:
        """
        Check whether an interface is administratively up and running.

        Args:
            name: Interface name (e.g., 'wg0')

        Returns:
            bool: False if the interface does not exist
        """
        try:
            stats = psutil.net_if_stats()
        except (OSError, psutil.Error) as e:
            raise ObserverError(f"Failed to get interfaces: {e}") from e

        nic = stats.get(name)
        if nic is None:
            logger.debug(f"Interface {name} does not exist")
            return False

        flags = {flag for flag in (nic.flags or "").split(",") if flag}
        logger.debug(f"Interface {name} flags: {sorted(flags)}")
        return REQUIRED_FLAGS <= flags
