import logging
from typing import Dict, Set, List, Tuple, Optional

from elevator_config import get_config
from elevator_interface import (
    RequestKind, ElevatorDirection, RequestResult, RejectionReason, StopRequestOutcome
)

CONFIG = get_config()

logger = logging.getLogger("ElevatorSystem")


class StopRequestRegistry:
    """
    Registry of pending stop requests, keyed by floor.

    Each floor holds the set of request kinds waiting to be served there.
    At most one entry exists per (floor, kind) pair.
    """

    def __init__(self,
                 bottom_floor: int = CONFIG["elevator"]["bottom_floor"],
                 top_floor: int = CONFIG["elevator"]["top_floor"]) -> None:
        """
        Initialize an empty registry.

        Args:
            bottom_floor: Lowest floor that can be requested
            top_floor: Highest floor that can be requested
        """
        self.bottom_floor = bottom_floor
        self.top_floor = top_floor
        self._stops: Dict[int, Set[RequestKind]] = {
            floor: set() for floor in range(bottom_floor, top_floor + 1)
        }

    def check_request(self, kind: RequestKind, floor: int) -> Optional[RejectionReason]:
        """
        Validate a request without touching the registry.

        Args:
            kind: Requested kind
            floor: Requested floor

        Returns:
            The rejection reason, or None if the request is admissible
        """
        if not isinstance(kind, RequestKind):
            return RejectionReason.InvalidFloorRequest
        if isinstance(floor, bool) or not isinstance(floor, int):
            return RejectionReason.InvalidFloorRequest
        if not (self.bottom_floor <= floor <= self.top_floor):
            return RejectionReason.InvalidFloorRequest
        if kind == RequestKind.Down and floor == self.bottom_floor:
            return RejectionReason.InvalidDirectionAtBoundary
        if kind == RequestKind.Up and floor == self.top_floor:
            return RejectionReason.InvalidDirectionAtBoundary
        return None

    def request_stop(self, kind: RequestKind, floor: int) -> StopRequestOutcome:
        """
        Register a stop request.

        Args:
            kind: Up/Down landing call or Any cabin call
            floor: Floor to stop at

        Returns:
            Added, AlreadyPending, or Rejected with a reason
        """
        reason = self.check_request(kind, floor)
        if reason is not None:
            logger.warning(f"Rejected {kind} request for floor {floor}: {reason.value}",
                           extra={"floor": floor, "kind": str(kind), "action": "reject"})
            return StopRequestOutcome(RequestResult.Rejected, reason)

        if kind in self._stops[floor]:
            logger.info(f"{kind.value} request for floor {floor} already pending",
                        extra={"floor": floor, "kind": kind.value, "action": "duplicate"})
            return StopRequestOutcome(RequestResult.AlreadyPending, RejectionReason.DuplicateRequest)

        self._stops[floor].add(kind)
        logger.info(f"Added {kind.value} request for floor {floor}",
                    extra={"floor": floor, "kind": kind.value, "action": "add"})
        return StopRequestOutcome(RequestResult.Added)

    def has_stops(self) -> bool:
        """Return True if any request is pending anywhere"""
        return any(self._stops.values())

    def stops_above(self, floor: int) -> bool:
        """Return True if a request is pending strictly above floor"""
        return any(self._stops[f] for f in range(floor + 1, self.top_floor + 1) if f in self._stops)

    def stops_below(self, floor: int) -> bool:
        """Return True if a request is pending strictly below floor"""
        return any(self._stops[f] for f in range(self.bottom_floor, floor) if f in self._stops)

    def stops_ahead(self, floor: int, direction: ElevatorDirection) -> bool:
        """
        Check for pending requests beyond floor in the direction of travel.

        Args:
            floor: Reference floor
            direction: Direction of travel

        Returns:
            True if a request is pending strictly beyond floor
        """
        if direction == ElevatorDirection.Up:
            return self.stops_above(floor)
        return self.stops_below(floor)

    def is_set(self, kind: RequestKind, floor: int) -> bool:
        return kind in self._stops.get(floor, ())

    def clear(self, kind: RequestKind, floor: int) -> None:
        """
        Remove a request if present.

        Args:
            kind: Request kind to clear
            floor: Floor of the request
        """
        if kind in self._stops.get(floor, ()):
            self._stops[floor].discard(kind)
            logger.info(f"Cleared {kind.value} request for floor {floor}",
                        extra={"floor": floor, "kind": kind.value, "action": "clear"})

    def pending(self) -> List[Tuple[int, RequestKind]]:
        """
        Snapshot of every pending request.

        Returns:
            (floor, kind) pairs ordered by floor
        """
        order = [RequestKind.Up, RequestKind.Down, RequestKind.Any]
        return [(floor, kind) for floor in sorted(self._stops)
                for kind in order if kind in self._stops[floor]]
