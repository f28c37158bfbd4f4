"""
Elevator Simulator Realistic Scenario Run

This script drives the elevator event loop with rider requests sent in
chronological order, using a short time unit so the whole run takes a
couple of seconds, and verifies that the cabin stops at the expected floors
in the expected order.
"""
import asyncio
import logging
import sys
from typing import List, Tuple

from elevator_config import configure_logging, load_settings
from elevator_controller import ArrivalDecision
from elevator_event_loop import ElevatorEventLoop
from elevator_interface import RequestKind, wait

logger = logging.getLogger("RealisticScenario")

# Seconds per time unit; with the default durations one floor takes 0.1s
SCENARIO_TIME_UNIT = 0.02
POLL_INTERVAL = 0.005


class RealisticElevatorScenario:
    """Realistic elevator scenario run on a ten floor building"""

    def __init__(self, time_unit: float = SCENARIO_TIME_UNIT) -> None:
        """Initialize the scenario environment"""
        self.settings = load_settings({"time_unit_seconds": time_unit})
        self.elevator = ElevatorEventLoop(self.settings)
        self.elevator.controller.subscribe(self)

        # Record elevator stops and button presses
        self.stops: List[int] = []
        self.floors_passed: List[int] = []
        self.button_presses: List[Tuple[RequestKind, int]] = []
        self.expected_stops = [5, 8, 3, 1, 2]
        self._arrival = asyncio.Event()

    def on_arrival(self, decision: ArrivalDecision) -> None:
        self.floors_passed.append(decision.floor)
        if decision.stopped:
            self.stops.append(decision.floor)
            logger.info(f"Elevator stopped: Floor {decision.floor}, Direction: {decision.direction.value}, "
                        f"Current stop sequence: {self.stops}")
        self._arrival.set()

    async def press_button(self, kind: RequestKind, floor: int) -> None:
        """Press an elevator button and record button press history"""
        self.button_presses.append((kind, floor))
        outcome = await self.elevator.submit(kind, floor)
        logger.info(f"Button pressed: Floor {floor}, Kind: {kind.value}, Outcome: {outcome.result.value}")

    async def _wait_until(self, predicate) -> None:
        """Wait for the next arrivals until predicate holds"""
        while not predicate():
            self._arrival.clear()
            await self._arrival.wait()

    async def wait_for_floor(self, floor: int) -> None:
        """Wait until the cabin reaches a floor"""
        await self._wait_until(lambda: self.elevator.controller.current_floor() == floor)

    async def wait_for_stop(self, floor: int) -> None:
        """Wait until the cabin stops at a floor"""
        await self._wait_until(lambda: bool(self.stops) and self.stops[-1] == floor)

    async def run_scenario(self) -> bool:
        """Run the scenario"""
        logger.info("=== Starting Realistic Elevator Scenario ===")
        loop_task = asyncio.create_task(self.elevator.run())
        try:
            # Rider inside at floor 1 wants floor 5
            await self.press_button(RequestKind.Any, 5)

            # Passing floor 2, a rider on floor 3 wants to go down; floor 3 is skipped on the way up
            await self.wait_for_floor(2)
            await self.press_button(RequestKind.Down, 3)

            # At floor 5 the rider leaves and another one boards for floor 8
            await self.wait_for_stop(5)
            await self.press_button(RequestKind.Any, 8)

            # After floor 8 the cabin turns around for the floor 3 landing call
            await self.wait_for_stop(3)
            await self.press_button(RequestKind.Any, 1)

            # On the way down, a rider on floor 2 wants to go up and is picked up after floor 1
            await wait(1, self.settings.time_unit_seconds)
            await self.press_button(RequestKind.Up, 2)

            await asyncio.wait_for(self.elevator.wait_until_idle(POLL_INTERVAL), timeout=30)
        finally:
            self.elevator.stop()
            await loop_task

        logger.info("=== Realistic Elevator Scenario Completed ===")
        return self.verify_results()

    def verify_results(self) -> bool:
        """Verify scenario results"""
        logger.info(f"Button press sequence: {self.button_presses}")
        logger.info(f"Elevator stop sequence: {self.stops}")
        logger.info(f"Total elevator travel distance: {len(self.floors_passed)} floors")

        if self.stops == self.expected_stops:
            logger.info("Elevator stopped at the expected floors in the expected order")
            return True
        logger.warning(f"Expected stops {self.expected_stops}, got {self.stops}")
        return False


async def main() -> bool:
    """Main function"""
    scenario = RealisticElevatorScenario()
    return await scenario.run_scenario()


if __name__ == "__main__":
    configure_logging()
    ok = asyncio.run(main())
    sys.exit(0 if ok else 1)
