"""Tunnel toggle state machine."""

from typing import Dict, Tuple

from .command_factory import TunnelCommandFactory
from .detector import TunnelStateDetector
from .endpoint import validate_endpoints
from .exceptions import ToggleFailed
from .models import Tunnel, TunnelClassification, ToggleAction
from .utils import CommandRunner, run_with_timeout
from ..logging_utility import logger

TOGGLE_TIMEOUT = 3.0

# A half-up interface is reset with down+up rather than trusted to resume.
TRANSITIONS: Dict[TunnelClassification, Tuple[ToggleAction, ...]] = {
    TunnelClassification.LINK_ANOMALY: (ToggleAction.DOWN, ToggleAction.UP),
    TunnelClassification.ACTIVE: (ToggleAction.DOWN,),
    TunnelClassification.INACTIVE: (ToggleAction.UP,),
}


class TunnelToggler:
    """Flips a tunnel between up and down through wg-quick.

    Callers must serialize toggles of the same tunnel name.
    """

    def __init__(
            self,
            commands: TunnelCommandFactory,
            detector: TunnelStateDetector,
            runner: CommandRunner = run_with_timeout,
            timeout: float = TOGGLE_TIMEOUT,
    ):
        self.commands = commands
        self.detector = detector
        self.runner = runner
        self.timeout = timeout

    def _run_wg_quick(self, action: ToggleAction, name: str) -> None:
        """Run one wg-quick step; anything but exit code 0 fails the toggle."""
        logger.info(f"wg-quick {action.value} {name}")
        code, _ = self.runner(self.commands.quick(action, name), self.timeout)
        if code != 0:
            raise ToggleFailed(action.value, name, code)

    def try_toggle(self, tunnel: Tunnel) -> bool:
        """
        Toggle the tunnel using wireguard-tools.

        Args:
            tunnel: Tunnel to flip; its cached flag is updated only on success

        Returns:
            bool: The new activation flag
        """
        state = self.detector.classify(tunnel.name)

        # endpoints must be valid before the interface is brought up
        if state is not TunnelClassification.ACTIVE:
            validate_endpoints(tunnel.config.peers)

        plan = TRANSITIONS[state]
        logger.info(
            f"Toggling {tunnel.name} from {state.value}: "
            f"{' then '.join(action.value for action in plan)}"
        )
        for action in plan:
            try:
                self._run_wg_quick(action, tunnel.name)
            except ToggleFailed as e:
                logger.error(f"Toggle of {tunnel.name} aborted: {e}")
                raise

        tunnel.active = plan[-1] is ToggleAction.UP
        logger.info(f"Tunnel {tunnel.name} active: {tunnel.active}")
        return tunnel.active
