"""
Elevator Console

Command line front end for the elevator simulator. Shows a status line and
reads stop requests, one per line:

    +3  rider on floor 3 wants to go up
    -3  rider on floor 3 wants to go down
    3   rider in the cabin wants to be taken to floor 3

Run with: python elevator_console.py
"""
import asyncio
import logging
import sys
import threading
from typing import Optional, TextIO

from pydantic import ValidationError

from elevator_config import ElevatorSettings, configure_logging, load_settings
from elevator_controller import ButtonPressRequest, ElevatorController
from elevator_event_loop import ElevatorEventLoop, ElevatorSnapshot
from elevator_interface import (
    RequestKind, ElevatorDirection, DisplayStatus, RejectionReason, StopRequestOutcome
)

logger = logging.getLogger("ElevatorConsole")

PROMPT = "Select a floor to send elevator to: "


class InvalidStopRequestError(ValueError):
    """
    Raised when console input does not describe a valid stop request.

    Attributes:
        reason: Rejection category
    """

    def __init__(self, reason: RejectionReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason


def parse_stop_request(text: str, bottom_floor: int, top_floor: int) -> ButtonPressRequest:
    """
    Parse one line of console input into a stop request.

    Args:
        text: Raw input, a floor number optionally preceded by + or -
        bottom_floor: Lowest floor served
        top_floor: Highest floor served

    Returns:
        The parsed request

    Raises:
        InvalidStopRequestError: If the input is not a valid request
    """
    raw = text.strip()
    if raw.startswith("+"):
        kind, floor_text = RequestKind.Up, raw[1:]
    elif raw.startswith("-"):
        kind, floor_text = RequestKind.Down, raw[1:]
    else:
        kind, floor_text = RequestKind.Any, raw

    range_message = (f"Input Error: floor needs to be number between {bottom_floor} and {top_floor} "
                     f"possibly preceded with + or - : {raw}")
    try:
        request = ButtonPressRequest(floor=floor_text, kind=kind)
    except ValidationError:
        raise InvalidStopRequestError(RejectionReason.InvalidFloorRequest, range_message) from None

    if not (bottom_floor <= request.floor <= top_floor):
        raise InvalidStopRequestError(RejectionReason.InvalidFloorRequest, range_message)
    if request.kind == RequestKind.Down and request.floor == bottom_floor:
        raise InvalidStopRequestError(RejectionReason.InvalidDirectionAtBoundary,
                                      f"Input Error: No down button for bottom floor: {raw}")
    if request.kind == RequestKind.Up and request.floor == top_floor:
        raise InvalidStopRequestError(RejectionReason.InvalidDirectionAtBoundary,
                                      f"Input Error: No up button for top floor: {raw}")
    return request


def format_status_line(floor: int, direction: ElevatorDirection, status: DisplayStatus) -> str:
    """
    Render the status line shown above the prompt.

    Args:
        floor: Current floor
        direction: Current direction
        status: Display status

    Returns:
        The formatted line
    """
    return "Current Floor: %3d Direction: %4s Status: %7s" % (floor, direction.value, status.value)


def format_outcome_error(outcome: StopRequestOutcome) -> Optional[str]:
    """Message for a request the controller turned down, None if it was accepted"""
    if outcome.accepted:
        return None
    return f"Input Error: request rejected ({outcome.reason.value})"


def start_line_reader(stdin: TextIO, loop: asyncio.AbstractEventLoop) -> asyncio.Queue:
    """
    Read lines from a blocking stream on a daemon thread.

    The thread never holds up interpreter shutdown, so an interrupted
    console exits without waiting for one more line of input.

    Args:
        stdin: Stream to read
        loop: Event loop that receives the lines

    Returns:
        Queue of lines; an empty string marks end of input
    """
    lines: asyncio.Queue = asyncio.Queue()

    def read_lines() -> None:
        while True:
            line = stdin.readline()
            loop.call_soon_threadsafe(lines.put_nowait, line)
            if not line:
                return

    threading.Thread(target=read_lines, name="elevator-console-stdin", daemon=True).start()
    return lines


class StatusPrinter:
    """Controller listener that re-prints the status line on every transition"""

    def __init__(self, controller: ElevatorController, stream: TextIO = sys.stdout) -> None:
        self.controller = controller
        self.stream = stream

    def _print(self) -> None:
        line = format_status_line(self.controller.current_floor(), self.controller.direction(),
                                  self.controller.status())
        print(f"\n{line}\n{PROMPT}", end="", file=self.stream, flush=True)

    def on_arrival(self, decision) -> None:
        self._print()

    def on_door_opened(self, floor: int) -> None:
        self._print()

    def on_parked(self, floor: int) -> None:
        self._print()


async def run_console(settings: Optional[ElevatorSettings] = None,
                      stdin: TextIO = sys.stdin, stdout: TextIO = sys.stdout) -> ElevatorSnapshot:
    """
    Run the interactive console until end of input.

    Args:
        settings: Elevator settings
        stdin: Input stream with one request per line
        stdout: Output stream for status lines and errors

    Returns:
        The last published elevator snapshot
    """
    elevator = ElevatorEventLoop(settings)
    elevator.controller.subscribe(StatusPrinter(elevator.controller, stdout))
    loop_task = asyncio.create_task(elevator.run())
    lines = start_line_reader(stdin, asyncio.get_running_loop())
    bottom_floor = elevator.settings.bottom_floor
    top_floor = elevator.settings.top_floor

    error: Optional[str] = None
    try:
        while True:
            snapshot = elevator.snapshot()
            print(format_status_line(snapshot.floor, snapshot.direction, snapshot.status), file=stdout)
            if error is not None:
                print(error, file=stdout)
            print(PROMPT, end="", file=stdout, flush=True)

            line = await lines.get()
            if not line:
                break
            if not line.strip():
                error = None
                continue
            try:
                request = parse_stop_request(line, bottom_floor, top_floor)
            except InvalidStopRequestError as e:
                logger.debug(f"Invalid console input {line.strip()!r}: {e.reason.value}")
                error = str(e)
                continue
            outcome = await elevator.submit(request.kind, request.floor)
            error = format_outcome_error(outcome)
    finally:
        elevator.stop()
        await loop_task
    return elevator.snapshot()


def main() -> None:
    """Main function"""
    configure_logging(logging.WARNING)
    try:
        asyncio.run(run_console(load_settings()))
    except KeyboardInterrupt:
        logger.info("Console interrupted, shutting down...")


if __name__ == "__main__":
    main()
