"""
Single-consumer event loop driving one elevator controller.

Stop requests and timer expirations are pushed onto one asyncio queue and
handled one at a time, so the controller and its registry are only ever
mutated from the loop task. Status readers use the snapshot published after
each event and never touch the controller directly.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, List, Tuple, Union

from pydantic import BaseModel, ConfigDict

from elevator_config import ElevatorSettings, load_settings
from elevator_interface import (
    RequestKind, ElevatorDirection, DisplayStatus, TimerKind, TimerControl, StopRequestOutcome
)
from elevator_controller import ElevatorController

logger = logging.getLogger("ElevatorSystem")


@dataclass
class StopRequestEvent:
    """A rider pressed a button"""
    kind: RequestKind
    floor: int
    future: Optional[asyncio.Future] = None


@dataclass
class TimerFiredEvent:
    """A previously armed timer expired"""
    timer: TimerKind


@dataclass
class ShutdownEvent:
    """Ask the loop to exit after the events queued before it"""


ElevatorEvent = Union[StopRequestEvent, TimerFiredEvent, ShutdownEvent]


class ElevatorSnapshot(BaseModel):
    """
    Read-only view of the elevator published after every event.

    Attributes:
        floor: Current floor
        direction: Current direction of travel
        status: Display status
        pending: Pending (floor, kind) requests
    """
    model_config = ConfigDict(frozen=True)

    floor: int
    direction: ElevatorDirection
    status: DisplayStatus
    pending: List[Tuple[int, RequestKind]] = []

    @property
    def idle(self) -> bool:
        return self.status == DisplayStatus.Stopped and not self.pending


class ElevatorEventLoop(TimerControl):
    """
    Owns an elevator controller and serializes every event that reaches it.

    Also acts as the controller's timer collaborator: arming a timer
    schedules a TimerFiredEvent on the queue after the configured duration,
    cancelling whatever timer was scheduled before.
    """

    def __init__(self, settings: Optional[ElevatorSettings] = None,
                 controller: Optional[ElevatorController] = None) -> None:
        """
        Initialize the event loop.

        Args:
            settings: Elevator settings, defaults to the configuration file values
            controller: Controller to drive, built from settings if omitted
        """
        self.settings = settings if settings is not None else load_settings()
        if controller is None:
            controller = ElevatorController.from_settings(self.settings, timer_control=self)
        else:
            controller.timer_control = self
        self.controller = controller

        self._queue: asyncio.Queue = asyncio.Queue()
        self._timer_handle: Optional[asyncio.TimerHandle] = None
        self._running = False
        self._snapshot = self._take_snapshot()

    @property
    def running(self) -> bool:
        return self._running

    # TimerControl

    def arm_transit_timer(self, duration: float) -> None:
        self._schedule_timer(TimerKind.Transit, duration)

    def arm_boarding_timer(self, duration: float) -> None:
        self._schedule_timer(TimerKind.Boarding, duration)

    def _schedule_timer(self, kind: TimerKind, duration: float) -> None:
        """
        Schedule a timer event, superseding the previous one.

        Args:
            kind: Timer kind
            duration: Duration in time units
        """
        if self._timer_handle is not None:
            self._timer_handle.cancel()
        delay = duration * self.settings.time_unit_seconds
        loop = asyncio.get_running_loop()
        self._timer_handle = loop.call_later(delay, self._queue.put_nowait, TimerFiredEvent(kind))

    # Producers

    def submit_nowait(self, kind: RequestKind, floor: int) -> asyncio.Future:
        """
        Queue a stop request without waiting for it to be handled.

        Args:
            kind: Request kind
            floor: Requested floor

        Returns:
            Future resolved with the StopRequestOutcome
        """
        future = asyncio.get_running_loop().create_future()
        self._queue.put_nowait(StopRequestEvent(kind, floor, future))
        return future

    async def submit(self, kind: RequestKind, floor: int) -> StopRequestOutcome:
        """
        Queue a stop request and wait for the controller's answer.

        Args:
            kind: Request kind
            floor: Requested floor

        Returns:
            The outcome of the request
        """
        return await self.submit_nowait(kind, floor)

    def stop(self) -> None:
        """Ask the loop to exit once the events already queued are handled"""
        self._queue.put_nowait(ShutdownEvent())

    # Readers

    def snapshot(self) -> ElevatorSnapshot:
        return self._snapshot

    def _take_snapshot(self) -> ElevatorSnapshot:
        return ElevatorSnapshot(floor=self.controller.current_floor(),
                                direction=self.controller.direction(),
                                status=self.controller.status(),
                                pending=self.controller.registry.pending())

    async def wait_until_idle(self, poll_interval: float = 0.01) -> ElevatorSnapshot:
        """
        Wait for the elevator to park with no pending requests.

        Args:
            poll_interval: Seconds between snapshot checks

        Returns:
            The idle snapshot
        """
        while True:
            snapshot = self._snapshot
            if snapshot.idle and self._queue.empty():
                return snapshot
            await asyncio.sleep(poll_interval)

    # Consumer

    async def run(self) -> None:
        """
        Handle queued events one at a time until stop() is called.

        An error raised while handling one event is logged and the loop
        moves on to the next event.
        """
        self._running = True
        logger.info("Elevator event loop started")
        try:
            while True:
                event = await self._queue.get()
                try:
                    if isinstance(event, ShutdownEvent):
                        break
                    self._dispatch(event)
                except Exception as e:
                    logger.error(f"Error handling {event!r}: {e}")
                finally:
                    self._snapshot = self._take_snapshot()
                    self._queue.task_done()
        finally:
            if self._timer_handle is not None:
                self._timer_handle.cancel()
                self._timer_handle = None
            self._running = False
            logger.info("Elevator event loop stopped")

    def _dispatch(self, event: ElevatorEvent) -> None:
        """
        Deliver one event to the controller.

        Args:
            event: Event to handle
        """
        if isinstance(event, StopRequestEvent):
            try:
                outcome = self.controller.submit_request(event.kind, event.floor)
            except Exception as e:
                if event.future is not None and not event.future.done():
                    event.future.set_exception(e)
                raise
            if event.future is not None and not event.future.done():
                event.future.set_result(outcome)
        elif isinstance(event, TimerFiredEvent):
            if event.timer == TimerKind.Transit:
                self.controller.on_transit_timer()
            else:
                self.controller.on_boarding_timer()
        else:
            logger.warning(f"Unknown event ignored: {event!r}")
