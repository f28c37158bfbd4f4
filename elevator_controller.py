from enum import Enum
from typing import Optional, List, Tuple, Any
import logging
from dataclasses import dataclass, field
from pydantic import BaseModel, field_validator

# Import enums and collaborator protocols
from elevator_interface import (
    RequestKind, ElevatorDirection, MovementState, DoorState, DisplayStatus, TimerKind,
    RequestResult, StopRequestOutcome, TimerControl, ElevatorEventListener,
    opposite_direction, direction_for_kind, kind_for_direction
)
from stop_registry import StopRequestRegistry

# Import configuration and constants
from elevator_config import ElevatorSettings, get_config

# Get system configuration
CONFIG = get_config()

logger = logging.getLogger("ElevatorSystem")


class ButtonPressRequest(BaseModel):
    """
    Model representing a button press request.

    Attributes:
        floor: The floor number the request is for
        kind: Landing call direction, or Any for a cabin call (default: Any)
    """
    floor: int
    kind: RequestKind = RequestKind.Any

    @field_validator('floor', mode='before')
    @classmethod
    def validate_floor(cls, v: Any) -> Any:
        """
        Validate that floor is an integral number.

        Args:
            v: The floor value to validate

        Returns:
            The floor value, stripped of surrounding whitespace if textual

        Raises:
            ValueError: If floor is not an integer
        """
        if isinstance(v, bool):
            raise ValueError("Floor must be an integer")
        if isinstance(v, str):
            v = v.strip()
            try:
                return int(v)
            except ValueError:
                raise ValueError("Floor must be an integer") from None
        if isinstance(v, float) and not v.is_integer():
            raise ValueError("Floor must be an integer")
        return v


class ArrivalAction(Enum):
    """What the cabin does at a floor it has just reached"""
    Stop = 'stop'
    Continue = 'continue'


@dataclass(frozen=True)
class ArrivalDecision:
    """
    Scheduling decision taken on a floor arrival.

    Attributes:
        floor: Floor the cabin arrived at
        action: Stop or Continue
        direction: Direction of travel after the decision
        reversed: Whether the direction was flipped at this floor
        served: Request kinds cleared by this stop
    """
    floor: int
    action: ArrivalAction
    direction: ElevatorDirection
    reversed: bool = False
    served: Tuple[RequestKind, ...] = field(default_factory=tuple)

    @property
    def stopped(self) -> bool:
        return self.action == ArrivalAction.Stop


class ElevatorController:
    """
    Elevator controller class responsible for handling requests and scheduling.

    This class owns the cabin state and implements a directional scan: the
    cabin keeps travelling in one direction while requests remain ahead,
    serves cabin calls and same-direction landing calls on the way, and only
    turns around once nothing is left ahead.
    """

    def __init__(self, timer_control: Optional[TimerControl] = None,
                 bottom_floor: int = CONFIG["elevator"]["bottom_floor"],
                 top_floor: int = CONFIG["elevator"]["top_floor"],
                 transit_duration: float = CONFIG["timing"]["transit"],
                 boarding_duration: float = CONFIG["timing"]["boarding"]) -> None:
        """
        Initialize the elevator controller.

        Args:
            timer_control: Collaborator that schedules transit and boarding timer events
            bottom_floor: Lowest floor the elevator can reach
            top_floor: Highest floor the elevator can reach
            transit_duration: Time units to travel between adjacent floors
            boarding_duration: Time units the door stays open at a stop

        Raises:
            ValueError: If the floor range is empty
        """
        if top_floor <= bottom_floor:
            raise ValueError(f"top_floor {top_floor} must be greater than bottom_floor {bottom_floor}")

        self.timer_control = timer_control
        self._bottom_floor = bottom_floor
        self._top_floor = top_floor
        self._transit_duration = transit_duration
        self._boarding_duration = boarding_duration
        self.registry = StopRequestRegistry(bottom_floor, top_floor)

        # Cabin starts parked at the bottom floor heading up
        self._current_floor = bottom_floor
        self._direction = ElevatorDirection.Up
        self._movement_state = MovementState.Stopped
        self._door_state = DoorState.Closed

        # Only one timer may be outstanding at a time
        self._armed_timer: Optional[TimerKind] = None
        self._subscribers: List[ElevatorEventListener] = []

        details = f"bottom_floor={bottom_floor}, top_floor={top_floor}"
        logger.info(f"ElevatorController initialized with {details}")
        if timer_control is None:
            logger.warning("No timer_control provided, timer events must be delivered manually")

    @classmethod
    def from_settings(cls, settings: ElevatorSettings,
                      timer_control: Optional[TimerControl] = None) -> 'ElevatorController':
        """
        Build a controller from validated settings.

        Args:
            settings: Elevator settings
            timer_control: Timer collaborator

        Returns:
            A new controller parked at the bottom floor
        """
        return cls(timer_control,
                   bottom_floor=settings.bottom_floor,
                   top_floor=settings.top_floor,
                   transit_duration=settings.transit_duration,
                   boarding_duration=settings.boarding_duration)

    # Accessors

    def current_floor(self) -> int:
        return self._current_floor

    def direction(self) -> ElevatorDirection:
        return self._direction

    def movement_state(self) -> MovementState:
        return self._movement_state

    def door_state(self) -> DoorState:
        return self._door_state

    def bottom_floor(self) -> int:
        return self._bottom_floor

    def top_floor(self) -> int:
        return self._top_floor

    def transit_duration(self) -> float:
        return self._transit_duration

    def boarding_duration(self) -> float:
        return self._boarding_duration

    def armed_timer(self) -> Optional[TimerKind]:
        """Return the timer kind currently expected to fire, if any"""
        return self._armed_timer

    def is_parked(self) -> bool:
        return self._movement_state == MovementState.Stopped and self._door_state == DoorState.Closed

    def status(self) -> DisplayStatus:
        """
        Derive the status shown to riders.

        Returns:
            Moving, Stopped (door closed) or Boarding (door open)
        """
        if self._movement_state == MovementState.Moving:
            return DisplayStatus.Moving
        if self._door_state == DoorState.Open:
            return DisplayStatus.Boarding
        return DisplayStatus.Stopped

    def set_direction(self, direction: Any) -> ElevatorDirection:
        """
        Set the direction of travel.

        Only ElevatorDirection values are accepted; anything else leaves
        the direction unchanged.

        Args:
            direction: The new direction

        Returns:
            The direction after the call
        """
        if isinstance(direction, ElevatorDirection):
            self._direction = direction
        else:
            logger.warning(f"Ignoring invalid direction value: {direction!r}",
                           extra={"direction": repr(direction), "action": "set_direction"})
        return self._direction

    def subscribe(self, listener: ElevatorEventListener) -> None:
        """
        Register an observer of controller transitions.

        Args:
            listener: Object implementing any of on_arrival, on_door_opened, on_parked
        """
        self._subscribers.append(listener)

    # Requests

    def submit_request(self, kind: RequestKind, floor: int) -> StopRequestOutcome:
        """
        Handle a new stop request.

        A request for the floor the cabin is stopped at is served on the
        spot when its direction fits: the door opens if it was closed, and
        nothing happens if riders are already boarding. Every other request
        is queued in the registry, and a parked cabin is started.

        Args:
            kind: Up/Down landing call or Any cabin call
            floor: Requested floor

        Returns:
            The outcome of the request
        """
        reason = self.registry.check_request(kind, floor)
        if reason is not None:
            logger.warning(f"Rejected {kind} request for floor {floor}: {reason.value}",
                           extra={"floor": floor, "kind": str(kind), "reason": reason.value})
            return StopRequestOutcome(RequestResult.Rejected, reason)

        if self._serves_at_current_floor(kind, floor):
            if kind != RequestKind.Any:
                self._direction = self._boarding_direction(kind, floor)
            if self._door_state == DoorState.Open:
                logger.info(f"Already boarding at floor {floor}, {kind.value} request needs no stop",
                            extra={"floor": floor, "kind": kind.value, "action": "already_boarding"})
                return StopRequestOutcome(RequestResult.Served)
            logger.info(f"Opening door at floor {floor} for {kind.value} request",
                        extra={"floor": floor, "kind": kind.value, "action": "open_at_floor"})
            self._open_door()
            return StopRequestOutcome(RequestResult.Served)

        outcome = self.registry.request_stop(kind, floor)
        if outcome.result == RequestResult.Added and self.is_parked():
            self._depart()
        return outcome

    def _serves_at_current_floor(self, kind: RequestKind, floor: int) -> bool:
        """
        Check whether a request is satisfied by the cabin as it stands.

        Args:
            kind: Request kind
            floor: Requested floor

        Returns:
            True if the cabin is stopped at floor with a compatible direction
        """
        if self._movement_state != MovementState.Stopped or floor != self._current_floor:
            return False
        if kind == RequestKind.Any:
            return True
        if floor in (self._bottom_floor, self._top_floor):
            return True
        if direction_for_kind(kind) == self._direction:
            return True
        # Opposite landing call: fine once nothing is left ahead
        return not self.registry.stops_ahead(floor, self._direction)

    def _boarding_direction(self, kind: RequestKind, floor: int) -> ElevatorDirection:
        """Direction a landing call at floor commits the cabin to"""
        if floor == self._bottom_floor:
            return ElevatorDirection.Up
        if floor == self._top_floor:
            return ElevatorDirection.Down
        return direction_for_kind(kind)

    # Movement

    def start(self) -> bool:
        """
        Start moving if there is anywhere to go.

        Turns around first when every pending stop lies behind the cabin.

        Returns:
            True if the cabin is now moving
        """
        if self._movement_state != MovementState.Stopped or self._door_state == DoorState.Open:
            return False
        if not self.registry.has_stops():
            return False

        floor = self._current_floor
        if self._direction == ElevatorDirection.Up:
            if not self.registry.stops_above(floor) and self.registry.stops_below(floor):
                self._direction = ElevatorDirection.Down
        elif self._direction == ElevatorDirection.Down:
            if not self.registry.stops_below(floor) and self.registry.stops_above(floor):
                self._direction = ElevatorDirection.Up

        self._movement_state = MovementState.Moving
        logger.info(f"Elevator starting {self._direction.value} from floor {floor}",
                    extra={"floor": floor, "direction": self._direction.value, "action": "start"})
        return True

    def _depart(self) -> None:
        if self.start():
            self._arm_timer(TimerKind.Transit)

    def on_transit_timer(self) -> Optional[ArrivalDecision]:
        """
        Handle the cabin reaching the next floor.

        Returns:
            The arrival decision, or None if the event was spurious
        """
        if self._armed_timer != TimerKind.Transit or self._movement_state != MovementState.Moving:
            logger.warning(f"Ignoring spurious transit timer event (armed: {self._armed_timer})",
                           extra={"floor": self._current_floor, "action": "spurious_timer"})
            return None
        self._armed_timer = None

        if self._direction == ElevatorDirection.Up:
            self._current_floor = min(self._current_floor + 1, self._top_floor)
        else:
            self._current_floor = max(self._current_floor - 1, self._bottom_floor)

        decision = self._decide_arrival()
        if decision.stopped:
            self._movement_state = MovementState.Stopped
            logger.info(f"Elevator stopped at floor {decision.floor}, direction {decision.direction.value}",
                        extra={"floor": decision.floor, "direction": decision.direction.value,
                               "reversed": decision.reversed, "action": "stopped"})
            self._notify("on_arrival", decision)
            self._open_door()
        else:
            logger.debug(f"Passing floor {decision.floor} heading {decision.direction.value}",
                         extra={"floor": decision.floor, "direction": decision.direction.value,
                                "reversed": decision.reversed, "action": "continue"})
            self._notify("on_arrival", decision)
            self._arm_timer(TimerKind.Transit)
        return decision

    def _decide_arrival(self) -> ArrivalDecision:
        """
        Decide whether to stop at the floor just reached.

        Cabin calls always stop the cabin. Landing calls stop it when they
        match the direction of travel, or when they point the other way and
        nothing is left ahead, in which case the cabin turns around here.

        The checks run in that order, but a stop clears every request it
        satisfies at the floor: a cabin call is cleared together with the
        same-direction landing call, or with the opposite landing call the
        cabin reverses for.

        Returns:
            The arrival decision; matched requests are cleared from the registry
        """
        floor = self._current_floor
        direction = self._direction
        same_kind = kind_for_direction(direction)
        opposite_kind = kind_for_direction(opposite_direction(direction))
        ahead = self.registry.stops_ahead(floor, direction)
        served: List[RequestKind] = []
        reversed_here = False

        if self.registry.is_set(RequestKind.Any, floor):
            served.append(RequestKind.Any)
        if self.registry.is_set(same_kind, floor):
            served.append(same_kind)
        elif self.registry.is_set(opposite_kind, floor) and not ahead:
            self._direction = opposite_direction(direction)
            reversed_here = True
            served.append(opposite_kind)
            logger.info(f"Reversing to {self._direction.value} at floor {floor} for landing call",
                        extra={"floor": floor, "direction": self._direction.value, "action": "reverse"})

        if served:
            for kind in served:
                self.registry.clear(kind, floor)
            return ArrivalDecision(floor, ArrivalAction.Stop, self._direction,
                                   reversed=reversed_here, served=tuple(served))

        if not ahead and self.registry.has_stops():
            # Everything left is behind the cabin
            self._direction = opposite_direction(direction)
            logger.info(f"Nothing ahead of floor {floor}, turning {self._direction.value}",
                        extra={"floor": floor, "direction": self._direction.value, "action": "reverse"})
            return ArrivalDecision(floor, ArrivalAction.Continue, self._direction, reversed=True)

        return ArrivalDecision(floor, ArrivalAction.Continue, direction)

    def on_boarding_timer(self) -> bool:
        """
        Handle the end of the door-open dwell.

        Closes the door, then either departs for the next stop or parks.

        Returns:
            False if the event was spurious, True otherwise
        """
        if self._armed_timer != TimerKind.Boarding or self._door_state != DoorState.Open:
            logger.warning(f"Ignoring spurious boarding timer event (armed: {self._armed_timer})",
                           extra={"floor": self._current_floor, "action": "spurious_timer"})
            return False
        self._armed_timer = None

        self._door_state = DoorState.Closed
        logger.info(f"Door closed at floor {self._current_floor}",
                    extra={"floor": self._current_floor, "action": "door_closed"})

        if self.registry.has_stops():
            self._depart()
        else:
            logger.info(f"No pending requests, elevator parked at floor {self._current_floor}",
                        extra={"floor": self._current_floor, "action": "parked"})
            self._notify("on_parked", self._current_floor)
        return True

    def _open_door(self) -> None:
        self._movement_state = MovementState.Stopped
        self._door_state = DoorState.Open
        self._notify("on_door_opened", self._current_floor)
        self._arm_timer(TimerKind.Boarding)

    def _arm_timer(self, kind: TimerKind) -> None:
        """
        Arm the transit or boarding timer, superseding any earlier one.

        Args:
            kind: Timer to arm
        """
        self._armed_timer = kind
        if self.timer_control is None:
            return
        if kind == TimerKind.Transit:
            logger.debug(f"Arming transit timer for {self._transit_duration}")
            self.timer_control.arm_transit_timer(self._transit_duration)
        else:
            logger.debug(f"Arming boarding timer for {self._boarding_duration}")
            self.timer_control.arm_boarding_timer(self._boarding_duration)

    def _notify(self, method: str, *args: Any) -> None:
        for subscriber in self._subscribers:
            handler = getattr(subscriber, method, None)
            if handler is None:
                continue
            try:
                handler(*args)
            except Exception as e:
                logger.error(f"Error in {method} handler: {e}")
