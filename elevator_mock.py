from typing import List, Optional, Tuple
import logging

from elevator_interface import TimerControl, TimerKind
from elevator_controller import ElevatorController, ArrivalDecision

logger = logging.getLogger("ElevatorSystem")


class RecordingTimerControl(TimerControl):
    """
    Manual timer collaborator for the elevator controller.

    Records every timer the controller arms instead of scheduling it, so
    tests and scripts can fire timer events one at a time and step the
    simulation deterministically on a virtual clock.
    """

    def __init__(self, controller: Optional[ElevatorController] = None) -> None:
        """
        Initialize the timer mock.

        Args:
            controller: Controller to attach to, may be attached later
        """
        self.armed: List[Tuple[TimerKind, float]] = []
        self.outstanding: Optional[Tuple[TimerKind, float]] = None
        self.clock = 0.0
        self.decisions: List[ArrivalDecision] = []
        self.controller: Optional[ElevatorController] = None
        if controller is not None:
            self.attach(controller)

    def attach(self, controller: ElevatorController) -> None:
        """Make this mock the controller's timer collaborator"""
        self.controller = controller
        controller.timer_control = self

    def arm_transit_timer(self, duration: float) -> None:
        self._arm(TimerKind.Transit, duration)

    def arm_boarding_timer(self, duration: float) -> None:
        self._arm(TimerKind.Boarding, duration)

    def _arm(self, kind: TimerKind, duration: float) -> None:
        if self.outstanding is not None:
            logger.debug(f"{kind.value} timer supersedes outstanding {self.outstanding[0].value} timer")
        self.armed.append((kind, duration))
        self.outstanding = (kind, duration)

    def fire(self) -> Optional[TimerKind]:
        """
        Fire the outstanding timer, advancing the virtual clock.

        Returns:
            The kind of timer fired, or None if nothing was armed
        """
        if self.outstanding is None:
            return None
        kind, duration = self.outstanding
        self.outstanding = None
        self.clock += duration
        if kind == TimerKind.Transit:
            decision = self.controller.on_transit_timer()
            if decision is not None:
                self.decisions.append(decision)
        else:
            self.controller.on_boarding_timer()
        return kind

    def run_until_parked(self, max_events: int = 1000) -> List[int]:
        """
        Fire timers until none is outstanding.

        Args:
            max_events: Safety limit on the number of timer events

        Returns:
            Floors stopped at, in order

        Raises:
            RuntimeError: If the controller is still busy after max_events
        """
        start = len(self.decisions)
        for _ in range(max_events):
            if self.fire() is None:
                return self.stops(start)
        raise RuntimeError(f"Elevator still busy after {max_events} timer events")

    def stops(self, start: int = 0) -> List[int]:
        """Floors of recorded stop decisions from index start onward"""
        return [d.floor for d in self.decisions[start:] if d.stopped]
