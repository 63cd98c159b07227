"""Reconciles wg session state with OS link state."""

from .command_factory import TunnelCommandFactory
from .link import LinkStateObserver
from .models import TunnelClassification
from .utils import CommandRunner, run_with_timeout
from ..logging_utility import logger

STATUS_TIMEOUT = 5.0


class TunnelStateDetector:
    """Classifies a tunnel as active, inactive or link anomaly.

    The ``wg show`` report decides whether a session exists at all; the link
    flags only distinguish a healthy session from one whose interface is down.
    """

    def __init__(
            self,
            commands: TunnelCommandFactory,
            observer: LinkStateObserver,
            runner: CommandRunner = run_with_timeout,
            timeout: float = STATUS_TIMEOUT,
    ):
        self.commands = commands
        self.observer = observer
        self.runner = runner
        self.timeout = timeout

    def driver_reports_active(self, name: str) -> bool:
        """True only if `wg show` exits 0 with non-empty output."""
        code, output = self.runner(self.commands.show_status(name), self.timeout)
        return code == 0 and bool(output.strip())

    def classify(self, name: str) -> TunnelClassification:
        if not self.driver_reports_active(name):
            logger.info(f"Interface {name} is not running")
            return TunnelClassification.INACTIVE

        if not self.observer.is_interface_up(name):
            logger.warning(f"Interface {name} has a wg session but its link is down")
            return TunnelClassification.LINK_ANOMALY

        logger.info(f"Interface {name} is running")
        return TunnelClassification.ACTIVE
