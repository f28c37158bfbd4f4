from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Optional, Any
import asyncio

from elevator_config import TIME_UNIT_SECONDS


class RequestKind(Enum):
    """
    Kind of stop request registered for a floor.

    Attributes:
        Up: Landing call, the rider on the floor wants to go up
        Down: Landing call, the rider on the floor wants to go down
        Any: Cabin call, a rider inside wants to be taken to the floor
    """
    Up = 'up'
    Down = 'down'
    Any = 'any'


class ElevatorDirection(Enum):
    """
    Represents the direction of elevator travel.

    Attributes:
        Up: The elevator is travelling upward
        Down: The elevator is travelling downward
    """
    Up = 'up'
    Down = 'down'


class MovementState(Enum):
    """Whether the cabin is moving between floors or stopped at one"""
    Moving = 'moving'
    Stopped = 'stopped'


class DoorState(Enum):
    """State of the cabin door"""
    Open = 'open'
    Closed = 'closed'


class DisplayStatus(Enum):
    """
    Status shown to riders.

    Attributes:
        Moving: The cabin is travelling
        Stopped: The cabin is parked with the door closed
        Boarding: The cabin is stopped with the door open
    """
    Moving = 'moving'
    Stopped = 'stopped'
    Boarding = 'boarding/unboarding'


class TimerKind(Enum):
    """The two timers the controller may arm"""
    Transit = 'transit'
    Boarding = 'boarding'


class RequestResult(Enum):
    """
    Outcome of a stop request.

    Attributes:
        Added: Queued in the registry
        AlreadyPending: The same request was already queued
        Rejected: Invalid request, nothing changed
        Served: The cabin is already stopped at the floor, nothing queued
    """
    Added = 'added'
    AlreadyPending = 'already_pending'
    Rejected = 'rejected'
    Served = 'served'


class RejectionReason(Enum):
    """
    Why a stop request was not added.

    Attributes:
        InvalidFloorRequest: Floor is not a number or lies outside the served range
        InvalidDirectionAtBoundary: Down at the bottom floor or Up at the top floor
        DuplicateRequest: The same request is already pending
    """
    InvalidFloorRequest = 'invalid_floor_request'
    InvalidDirectionAtBoundary = 'invalid_direction_at_boundary'
    DuplicateRequest = 'duplicate_request'


@dataclass(frozen=True)
class StopRequestOutcome:
    """
    Result returned for every stop request.

    Attributes:
        result: Added, AlreadyPending or Rejected
        reason: Set for Rejected and AlreadyPending outcomes
    """
    result: RequestResult
    reason: Optional[RejectionReason] = None

    @property
    def accepted(self) -> bool:
        return self.result != RequestResult.Rejected


class TimerControl(Protocol):
    """
    Protocol for the collaborator that turns durations into timer events.

    Every call guarantees exactly one later call of the matching
    controller handler, unless superseded by a newer arm.
    """
    def arm_transit_timer(self, duration: float) -> None:
        """Schedule one on_transit_timer call after duration"""
        ...

    def arm_boarding_timer(self, duration: float) -> None:
        """Schedule one on_boarding_timer call after duration"""
        ...


class ElevatorEventListener(Protocol):
    """
    Protocol for observers of controller transitions.

    Listeners may implement any subset of these methods.
    """
    def on_arrival(self, decision: Any) -> None: ...

    def on_door_opened(self, floor: int) -> None: ...

    def on_parked(self, floor: int) -> None: ...


def opposite_direction(direction: ElevatorDirection) -> ElevatorDirection:
    """
    Get the opposite direction.

    Args:
        direction: Current direction

    Returns:
        The opposite direction
    """
    return ElevatorDirection.Down if direction == ElevatorDirection.Up else ElevatorDirection.Up


def direction_for_kind(kind: RequestKind) -> Optional[ElevatorDirection]:
    """
    Map a landing call kind to its travel direction.

    Returns:
        The direction for Up/Down requests, None for cabin calls
    """
    if kind == RequestKind.Up:
        return ElevatorDirection.Up
    if kind == RequestKind.Down:
        return ElevatorDirection.Down
    return None


def kind_for_direction(direction: ElevatorDirection) -> RequestKind:
    """Map a travel direction to the landing call kind with the same direction"""
    return RequestKind.Up if direction == ElevatorDirection.Up else RequestKind.Down


async def wait(rounds: float, time_unit: float = TIME_UNIT_SECONDS) -> None:
    """
    Helper function to simulate time passing during elevator operation.

    Args:
        rounds: Number of time units to wait
        time_unit: Seconds per time unit
    """
    await asyncio.sleep(rounds * time_unit)
