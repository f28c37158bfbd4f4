import unittest
import asyncio
import io
import threading
from unittest.mock import MagicMock, patch

from pydantic import ValidationError

from elevator_config import ElevatorSettings, get_config, load_settings
from elevator_interface import (
    RequestKind, ElevatorDirection, MovementState, DoorState, DisplayStatus, TimerKind,
    RequestResult, RejectionReason, opposite_direction, direction_for_kind
)
from stop_registry import StopRequestRegistry
from elevator_controller import ElevatorController, ButtonPressRequest, ArrivalAction
from elevator_mock import RecordingTimerControl
from elevator_event_loop import ElevatorEventLoop, TimerFiredEvent
from elevator_console import (
    InvalidStopRequestError, parse_stop_request, format_status_line, run_console, start_line_reader
)
from run_realistic_scenario import RealisticElevatorScenario


class TestStopRequestRegistry(unittest.TestCase):
    """Unit test class for the stop request registry"""

    def setUp(self):
        """Setup before test execution"""
        self.registry = StopRequestRegistry(1, 10)

    def test_request_stop_added(self):
        """Test a valid request is added"""
        outcome = self.registry.request_stop(RequestKind.Any, 5)
        self.assertEqual(outcome.result, RequestResult.Added)
        self.assertTrue(self.registry.is_set(RequestKind.Any, 5))
        self.assertTrue(self.registry.has_stops())

    def test_duplicate_request_is_idempotent(self):
        """Test a second identical request leaves one pending entry"""
        self.registry.request_stop(RequestKind.Up, 4)
        outcome = self.registry.request_stop(RequestKind.Up, 4)
        self.assertEqual(outcome.result, RequestResult.AlreadyPending)
        self.assertEqual(outcome.reason, RejectionReason.DuplicateRequest)
        self.assertEqual(self.registry.pending(), [(4, RequestKind.Up)])

    def test_kinds_at_same_floor_are_independent(self):
        """Test different kinds on one floor are separate entries"""
        self.registry.request_stop(RequestKind.Up, 4)
        self.registry.request_stop(RequestKind.Down, 4)
        self.registry.request_stop(RequestKind.Any, 4)
        self.assertEqual(self.registry.pending(),
                         [(4, RequestKind.Up), (4, RequestKind.Down), (4, RequestKind.Any)])

    def test_boundary_directions_rejected(self):
        """Test Down at the bottom floor and Up at the top floor"""
        down = self.registry.request_stop(RequestKind.Down, 1)
        up = self.registry.request_stop(RequestKind.Up, 10)
        self.assertEqual(down.result, RequestResult.Rejected)
        self.assertEqual(down.reason, RejectionReason.InvalidDirectionAtBoundary)
        self.assertEqual(up.reason, RejectionReason.InvalidDirectionAtBoundary)
        self.assertFalse(self.registry.has_stops())

    def test_boundary_valid_directions_accepted(self):
        """Test Up at the bottom floor and Down at the top floor"""
        self.assertEqual(self.registry.request_stop(RequestKind.Up, 1).result, RequestResult.Added)
        self.assertEqual(self.registry.request_stop(RequestKind.Down, 10).result, RequestResult.Added)

    def test_out_of_range_rejected(self):
        """Test floors outside the served range"""
        for floor in (0, 11, -3):
            outcome = self.registry.request_stop(RequestKind.Any, floor)
            self.assertEqual(outcome.reason, RejectionReason.InvalidFloorRequest)
        self.assertFalse(self.registry.has_stops())

    def test_non_integer_floor_rejected(self):
        """Test non-integral floor values"""
        for floor in ("5", 5.0, None, True):
            outcome = self.registry.request_stop(RequestKind.Any, floor)
            self.assertEqual(outcome.result, RequestResult.Rejected)
        self.assertFalse(self.registry.has_stops())

    def test_stops_above_and_below(self):
        """Test directional queries are strict"""
        self.registry.request_stop(RequestKind.Any, 5)
        self.assertTrue(self.registry.stops_above(4))
        self.assertFalse(self.registry.stops_above(5))
        self.assertTrue(self.registry.stops_below(6))
        self.assertFalse(self.registry.stops_below(5))
        self.assertTrue(self.registry.stops_ahead(3, ElevatorDirection.Up))
        self.assertFalse(self.registry.stops_ahead(3, ElevatorDirection.Down))

    def test_queries_at_terminal_floors(self):
        """Test nothing is above the top floor or below the bottom floor"""
        self.registry.request_stop(RequestKind.Any, 10)
        self.registry.request_stop(RequestKind.Any, 1)
        self.assertFalse(self.registry.stops_above(10))
        self.assertFalse(self.registry.stops_below(1))

    def test_clear(self):
        """Test clearing set and unset requests"""
        self.registry.request_stop(RequestKind.Down, 3)
        self.registry.clear(RequestKind.Down, 3)
        self.registry.clear(RequestKind.Down, 3)
        self.registry.clear(RequestKind.Up, 7)
        self.assertFalse(self.registry.is_set(RequestKind.Down, 3))
        self.assertFalse(self.registry.has_stops())


class TestElevatorController(unittest.TestCase):
    """Unit test class for elevator controller"""

    def setUp(self):
        """Setup before test execution"""
        self.controller = ElevatorController(None, 1, 10)
        self.timers = RecordingTimerControl(self.controller)

    def park_at(self, floor):
        """Send the cabin to a floor and let it park there"""
        self.controller.submit_request(RequestKind.Any, floor)
        self.timers.run_until_parked()
        self.assertEqual(self.controller.current_floor(), floor)
        self.assertTrue(self.controller.is_parked())

    def test_initial_state(self):
        """Test the cabin starts parked at the bottom floor heading up"""
        self.assertEqual(self.controller.current_floor(), 1)
        self.assertEqual(self.controller.direction(), ElevatorDirection.Up)
        self.assertEqual(self.controller.movement_state(), MovementState.Stopped)
        self.assertEqual(self.controller.door_state(), DoorState.Closed)
        self.assertEqual(self.controller.status(), DisplayStatus.Stopped)
        self.assertEqual(self.controller.transit_duration(), 5)
        self.assertEqual(self.controller.boarding_duration(), 5)
        self.assertIsNone(self.controller.armed_timer())

    def test_invalid_floor_range(self):
        """Test construction with an empty floor range"""
        with self.assertRaises(ValueError):
            ElevatorController(None, 5, 5)

    def test_scenario_a_cabin_call(self):
        """Test scenario A: cabin call from floor 1 to floor 5"""
        outcome = self.controller.submit_request(RequestKind.Any, 5)
        self.assertEqual(outcome.result, RequestResult.Added)
        self.assertEqual(self.controller.movement_state(), MovementState.Moving)
        self.assertEqual(self.controller.direction(), ElevatorDirection.Up)
        self.assertEqual(self.timers.outstanding, (TimerKind.Transit, 5))

        for floor in (2, 3, 4):
            decision = self.controller.on_transit_timer()
            self.assertEqual(decision.floor, floor)
            self.assertEqual(decision.action, ArrivalAction.Continue)
            self.assertEqual(self.controller.status(), DisplayStatus.Moving)

        decision = self.controller.on_transit_timer()
        self.assertEqual(decision.floor, 5)
        self.assertTrue(decision.stopped)
        self.assertEqual(decision.served, (RequestKind.Any,))
        self.assertFalse(self.controller.registry.is_set(RequestKind.Any, 5))
        self.assertEqual(self.controller.door_state(), DoorState.Open)
        self.assertEqual(self.controller.status(), DisplayStatus.Boarding)
        self.assertEqual(self.controller.armed_timer(), TimerKind.Boarding)

    def test_scenario_b_skip_opposite_landing_call(self):
        """Test scenario B: down call at floor 3 is passed on the way up"""
        self.controller.submit_request(RequestKind.Any, 5)
        self.controller.on_transit_timer()  # floor 2
        outcome = self.controller.submit_request(RequestKind.Down, 3)
        self.assertEqual(outcome.result, RequestResult.Added)

        decision = self.controller.on_transit_timer()
        self.assertEqual(decision.floor, 3)
        self.assertEqual(decision.action, ArrivalAction.Continue)
        self.assertTrue(self.controller.registry.is_set(RequestKind.Down, 3))

        self.controller.on_transit_timer()  # floor 4
        decision = self.controller.on_transit_timer()
        self.assertEqual(decision.floor, 5)
        self.assertTrue(decision.stopped)

        self.assertTrue(self.controller.on_boarding_timer())
        self.assertEqual(self.controller.movement_state(), MovementState.Moving)
        self.assertEqual(self.controller.direction(), ElevatorDirection.Down)

        self.controller.on_transit_timer()  # floor 4
        decision = self.controller.on_transit_timer()
        self.assertEqual(decision.floor, 3)
        self.assertTrue(decision.stopped)
        self.assertEqual(decision.served, (RequestKind.Down,))
        self.assertFalse(self.controller.registry.has_stops())

    def test_scenario_c_boundary_rejected(self):
        """Test scenario C: down call at the bottom floor leaves state unchanged"""
        outcome = self.controller.submit_request(RequestKind.Down, 1)
        self.assertEqual(outcome.result, RequestResult.Rejected)
        self.assertEqual(outcome.reason, RejectionReason.InvalidDirectionAtBoundary)
        self.assertTrue(self.controller.is_parked())
        self.assertEqual(self.controller.direction(), ElevatorDirection.Up)
        self.assertFalse(self.controller.registry.has_stops())
        self.assertEqual(self.timers.armed, [])

    def test_scenario_d_open_door_at_current_floor(self):
        """Test scenario D: request for the parked floor opens the door"""
        self.park_at(3)
        armed_before = len(self.timers.armed)

        outcome = self.controller.submit_request(RequestKind.Any, 3)
        self.assertEqual(outcome.result, RequestResult.Served)
        self.assertEqual(self.controller.door_state(), DoorState.Open)
        self.assertEqual(self.controller.status(), DisplayStatus.Boarding)
        self.assertFalse(self.controller.registry.has_stops())
        self.assertEqual(self.timers.armed[armed_before:], [(TimerKind.Boarding, 5)])

        self.timers.run_until_parked()
        self.assertTrue(self.controller.is_parked())
        self.assertNotIn(TimerKind.Transit, [kind for kind, _ in self.timers.armed[armed_before:]])

    def test_request_while_boarding_at_floor_is_noop(self):
        """Test a same-floor request while the door is open changes nothing"""
        self.controller.submit_request(RequestKind.Any, 4)
        for _ in range(3):
            self.controller.on_transit_timer()
        armed_before = len(self.timers.armed)

        outcome = self.controller.submit_request(RequestKind.Up, 4)
        self.assertEqual(outcome.result, RequestResult.Served)
        self.assertFalse(self.controller.registry.has_stops())
        self.assertEqual(len(self.timers.armed), armed_before)

    def test_landing_call_at_boundary_sets_only_direction(self):
        """Test an up call at the parked bottom floor opens the door heading up"""
        self.controller.set_direction(ElevatorDirection.Down)
        outcome = self.controller.submit_request(RequestKind.Up, 1)
        self.assertEqual(outcome.result, RequestResult.Served)
        self.assertEqual(self.controller.direction(), ElevatorDirection.Up)
        self.assertEqual(self.controller.door_state(), DoorState.Open)

    def test_opposite_call_at_parked_floor_turns_cabin(self):
        """Test a down call at the parked floor is served heading down"""
        self.park_at(6)
        self.assertEqual(self.controller.direction(), ElevatorDirection.Up)
        outcome = self.controller.submit_request(RequestKind.Down, 6)
        self.assertEqual(outcome.result, RequestResult.Served)
        self.assertEqual(self.controller.direction(), ElevatorDirection.Down)
        self.assertEqual(self.controller.door_state(), DoorState.Open)

    def test_duplicate_request_does_not_restart(self):
        """Test duplicate requests while moving"""
        self.controller.submit_request(RequestKind.Any, 7)
        outcome = self.controller.submit_request(RequestKind.Any, 7)
        self.assertEqual(outcome.result, RequestResult.AlreadyPending)
        self.assertEqual(self.timers.armed, [(TimerKind.Transit, 5)])

    def test_liveness_start_moves_parked_cabin(self):
        """Test start moves a parked cabin with pending stops"""
        self.controller.registry.request_stop(RequestKind.Down, 8)
        self.assertTrue(self.controller.start())
        self.assertEqual(self.controller.movement_state(), MovementState.Moving)

    def test_start_without_stops_is_noop(self):
        """Test start with nothing to do"""
        self.assertFalse(self.controller.start())
        self.assertTrue(self.controller.is_parked())

    def test_start_reverses_when_stops_only_below(self):
        """Test start turns the cabin when every stop is behind it"""
        self.park_at(8)
        self.controller.registry.request_stop(RequestKind.Any, 2)
        self.controller.start()
        self.assertEqual(self.controller.direction(), ElevatorDirection.Down)

    def test_quiescence_parks_without_timer(self):
        """Test boarding timer with no stops parks the cabin"""
        self.controller.submit_request(RequestKind.Any, 2)
        self.controller.on_transit_timer()
        armed_before = len(self.timers.armed)
        self.assertTrue(self.controller.on_boarding_timer())
        self.assertTrue(self.controller.is_parked())
        self.assertIsNone(self.controller.armed_timer())
        self.assertEqual(len(self.timers.armed), armed_before)

    def test_spurious_timer_events_ignored(self):
        """Test timer events that do not match the armed timer"""
        self.assertIsNone(self.controller.on_transit_timer())
        self.assertFalse(self.controller.on_boarding_timer())
        self.assertEqual(self.controller.current_floor(), 1)

        self.controller.submit_request(RequestKind.Any, 3)
        self.assertFalse(self.controller.on_boarding_timer())
        self.assertEqual(self.controller.movement_state(), MovementState.Moving)
        self.assertEqual(self.controller.armed_timer(), TimerKind.Transit)

        self.controller.on_transit_timer()
        self.controller.on_transit_timer()
        self.assertEqual(self.controller.status(), DisplayStatus.Boarding)
        self.assertIsNone(self.controller.on_transit_timer())
        self.assertEqual(self.controller.current_floor(), 3)

    def test_reversal_for_last_opposite_call(self):
        """Test an opposite landing call is served when nothing is ahead"""
        self.controller.submit_request(RequestKind.Down, 4)
        stops = self.timers.run_until_parked()
        self.assertEqual(stops, [4])
        decision = self.timers.decisions[-1]
        self.assertTrue(decision.reversed)
        self.assertEqual(self.controller.direction(), ElevatorDirection.Down)

    def test_cabin_call_also_serves_same_direction_call(self):
        """Test one stop clears both the cabin call and the matching landing call"""
        self.controller.submit_request(RequestKind.Any, 4)
        self.controller.submit_request(RequestKind.Up, 4)
        self.controller.submit_request(RequestKind.Any, 6)
        stops = self.timers.run_until_parked()
        self.assertEqual(stops, [4, 6])

    def test_turns_around_when_only_stops_behind(self):
        """Test the cabin reverses without stopping when all stops are behind it"""
        self.controller.submit_request(RequestKind.Any, 5)
        self.controller.on_transit_timer()  # floor 2
        self.controller.on_transit_timer()  # floor 3
        self.controller.registry.clear(RequestKind.Any, 5)
        self.controller.registry.request_stop(RequestKind.Any, 2)

        decision = self.controller.on_transit_timer()
        self.assertEqual(decision.floor, 4)
        self.assertEqual(decision.action, ArrivalAction.Continue)
        self.assertTrue(decision.reversed)
        self.assertEqual(self.controller.direction(), ElevatorDirection.Down)
        self.assertEqual(self.timers.run_until_parked(), [2])

    def test_full_directional_scan(self):
        """Test a mixed set of requests is served in scan order"""
        self.controller.submit_request(RequestKind.Any, 5)
        self.controller.submit_request(RequestKind.Up, 3)
        self.controller.submit_request(RequestKind.Down, 7)
        self.controller.submit_request(RequestKind.Down, 9)
        self.controller.submit_request(RequestKind.Any, 2)
        self.assertEqual(self.timers.run_until_parked(), [2, 3, 5, 9, 7])

    def test_direction_never_any(self):
        """Test direction is always Up or Down through a run"""
        listener = MagicMock()
        self.controller.subscribe(listener)
        self.controller.submit_request(RequestKind.Down, 6)
        self.controller.submit_request(RequestKind.Any, 2)
        while self.timers.fire() is not None:
            self.assertIn(self.controller.direction(), (ElevatorDirection.Up, ElevatorDirection.Down))
        listener.on_parked.assert_called_once()
        self.assertTrue(listener.on_arrival.called)

    def test_set_direction_rejects_invalid_values(self):
        """Test the direction setter ignores anything but a direction"""
        self.assertEqual(self.controller.set_direction(ElevatorDirection.Down), ElevatorDirection.Down)
        for value in ("up", "down", RequestKind.Any, RequestKind.Up, None, 1):
            self.assertEqual(self.controller.set_direction(value), ElevatorDirection.Down)
        self.assertEqual(self.controller.direction(), ElevatorDirection.Down)

    def test_listener_errors_are_contained(self):
        """Test a failing listener does not break the controller"""
        listener = MagicMock()
        listener.on_door_opened.side_effect = RuntimeError("boom")
        self.controller.subscribe(listener)
        self.controller.submit_request(RequestKind.Any, 2)
        decision = self.controller.on_transit_timer()
        self.assertTrue(decision.stopped)
        self.assertEqual(self.controller.door_state(), DoorState.Open)

    def test_registry_covers_controller_floors(self):
        """Test the registry always spans exactly the controller's floors"""
        with self.assertRaises(TypeError):
            ElevatorController(None, 1, 10, registry=StopRequestRegistry(1, 20))
        registry = self.controller.registry
        self.assertEqual((registry.bottom_floor, registry.top_floor), (1, 10))
        outcome = self.controller.submit_request(RequestKind.Any, 15)
        self.assertEqual(outcome.reason, RejectionReason.InvalidFloorRequest)
        self.assertTrue(self.controller.is_parked())
        self.assertEqual(self.timers.armed, [])

    def test_virtual_clock_tracks_timer_durations(self):
        """Test fired timers advance the mock clock by their durations"""
        self.park_at(3)
        # Two floors of transit plus one boarding dwell
        self.assertEqual(self.timers.clock, 15)

    def test_from_settings(self):
        """Test building a controller from settings"""
        settings = load_settings({"bottom_floor": 0, "top_floor": 20, "transit_duration": 2})
        controller = ElevatorController.from_settings(settings)
        self.assertEqual(controller.bottom_floor(), 0)
        self.assertEqual(controller.top_floor(), 20)
        self.assertEqual(controller.current_floor(), 0)
        self.assertEqual(controller.transit_duration(), 2)


class TestHelpersAndConfig(unittest.TestCase):
    """Unit tests for enums, configuration and the console surface"""

    def test_direction_helpers(self):
        self.assertEqual(opposite_direction(ElevatorDirection.Up), ElevatorDirection.Down)
        self.assertEqual(opposite_direction(ElevatorDirection.Down), ElevatorDirection.Up)
        self.assertEqual(direction_for_kind(RequestKind.Down), ElevatorDirection.Down)
        self.assertIsNone(direction_for_kind(RequestKind.Any))

    def test_get_config_returns_copy(self):
        config = get_config()
        config["elevator"]["top_floor"] = 99
        self.assertEqual(get_config()["elevator"]["top_floor"], 10)

    def test_settings_validation(self):
        with self.assertRaises(ValidationError):
            ElevatorSettings(bottom_floor=5, top_floor=3)
        with self.assertRaises(ValidationError):
            load_settings({"boarding_duration": 0})
        settings = load_settings()
        self.assertEqual((settings.bottom_floor, settings.top_floor), (1, 10))
        with self.assertRaises(ValidationError):
            settings.top_floor = 12

    def test_button_press_request_validation(self):
        self.assertEqual(ButtonPressRequest(floor=" 7 ").floor, 7)
        self.assertEqual(ButtonPressRequest(floor=7).kind, RequestKind.Any)
        for value in ("abc", "", "3.5", 2.5, True):
            with self.assertRaises(ValidationError):
                ButtonPressRequest(floor=value)

    def test_parse_stop_request(self):
        request = parse_stop_request("+3\n", 1, 10)
        self.assertEqual((request.kind, request.floor), (RequestKind.Up, 3))
        request = parse_stop_request("-3", 1, 10)
        self.assertEqual((request.kind, request.floor), (RequestKind.Down, 3))
        request = parse_stop_request("3", 1, 10)
        self.assertEqual((request.kind, request.floor), (RequestKind.Any, 3))

    def test_parse_stop_request_errors(self):
        cases = {
            "-1": (RejectionReason.InvalidDirectionAtBoundary, "No down button for bottom floor"),
            "+10": (RejectionReason.InvalidDirectionAtBoundary, "No up button for top floor"),
            "11": (RejectionReason.InvalidFloorRequest, "between 1 and 10"),
            "abc": (RejectionReason.InvalidFloorRequest, "between 1 and 10"),
            "+": (RejectionReason.InvalidFloorRequest, "between 1 and 10"),
        }
        for text, (reason, message) in cases.items():
            with self.assertRaises(InvalidStopRequestError) as ctx:
                parse_stop_request(text, 1, 10)
            self.assertEqual(ctx.exception.reason, reason)
            self.assertIn(message, str(ctx.exception))

    def test_format_status_line(self):
        line = format_status_line(3, ElevatorDirection.Down, DisplayStatus.Boarding)
        self.assertEqual(line, "Current Floor:   3 Direction: down Status: boarding/unboarding")
        line = format_status_line(10, ElevatorDirection.Up, DisplayStatus.Moving)
        self.assertEqual(line, "Current Floor:  10 Direction:   up Status:  moving")


class TestElevatorEventLoop(unittest.IsolatedAsyncioTestCase):
    """Integration test class for the elevator event loop"""

    async def asyncSetUp(self):
        """Asynchronous setup before test execution"""
        self.settings = load_settings({"time_unit_seconds": 0.001})
        self.elevator = ElevatorEventLoop(self.settings)
        self.stops = []
        listener = MagicMock()
        listener.on_arrival.side_effect = lambda d: self.stops.append(d.floor) if d.stopped else None
        self.elevator.controller.subscribe(listener)
        self.loop_task = asyncio.create_task(self.elevator.run())

    async def asyncTearDown(self):
        """Stop the event loop after each test"""
        self.elevator.stop()
        await asyncio.wait_for(self.loop_task, timeout=5)

    async def test_request_is_served(self):
        """Test a cabin call is served and the cabin parks"""
        outcome = await self.elevator.submit(RequestKind.Any, 3)
        self.assertEqual(outcome.result, RequestResult.Added)
        snapshot = await asyncio.wait_for(self.elevator.wait_until_idle(0.002), timeout=5)
        self.assertEqual(snapshot.floor, 3)
        self.assertEqual(snapshot.status, DisplayStatus.Stopped)
        self.assertEqual(self.stops, [3])

    async def test_requests_are_serialized_in_order(self):
        """Test queued requests are handled in submission order"""
        first = self.elevator.submit_nowait(RequestKind.Any, 4)
        second = self.elevator.submit_nowait(RequestKind.Down, 2)
        third = self.elevator.submit_nowait(RequestKind.Down, 1)
        self.assertEqual((await first).result, RequestResult.Added)
        self.assertEqual((await second).result, RequestResult.Added)
        self.assertEqual((await third).reason, RejectionReason.InvalidDirectionAtBoundary)
        await asyncio.wait_for(self.elevator.wait_until_idle(0.002), timeout=5)
        self.assertEqual(self.stops, [4, 2])
        self.assertEqual(self.elevator.snapshot().direction, ElevatorDirection.Down)

    async def test_snapshot_reflects_pending(self):
        """Test the snapshot lists pending requests"""
        await self.elevator.submit(RequestKind.Any, 9)
        snapshot = self.elevator.snapshot()
        self.assertEqual(snapshot.pending, [(9, RequestKind.Any)])
        self.assertEqual(snapshot.status, DisplayStatus.Moving)

    async def test_error_in_one_request_does_not_stop_loop(self):
        """Test a failing request is reported and later requests still work"""
        with patch.object(self.elevator.controller, "submit_request", side_effect=RuntimeError("boom")):
            with self.assertRaises(RuntimeError):
                await asyncio.wait_for(self.elevator.submit(RequestKind.Any, 5), timeout=5)
        self.assertTrue(self.elevator.running)
        outcome = await asyncio.wait_for(self.elevator.submit(RequestKind.Any, 2), timeout=5)
        self.assertEqual(outcome.result, RequestResult.Added)
        await asyncio.wait_for(self.elevator.wait_until_idle(0.002), timeout=5)
        self.assertEqual(self.stops, [2])


class TestElevatorEventLoopTimers(unittest.IsolatedAsyncioTestCase):
    """Timer handling of the elevator event loop"""

    async def test_arming_cancels_previous_timer(self):
        """Test a new timer supersedes the one scheduled before it"""
        elevator = ElevatorEventLoop(load_settings())
        elevator.arm_transit_timer(5)
        first = elevator._timer_handle
        elevator.arm_boarding_timer(5)
        second = elevator._timer_handle
        self.assertTrue(first.cancelled())
        self.assertFalse(second.cancelled())
        second.cancel()

    async def test_stray_timer_event_is_ignored(self):
        """Test a boarding timer event while moving leaves the cabin alone"""
        elevator = ElevatorEventLoop(load_settings({"time_unit_seconds": 1.0}))
        loop_task = asyncio.create_task(elevator.run())
        try:
            await elevator.submit(RequestKind.Any, 6)
            before = elevator.snapshot()
            self.assertEqual(before.status, DisplayStatus.Moving)

            elevator._queue.put_nowait(TimerFiredEvent(TimerKind.Boarding))
            await asyncio.wait_for(elevator._queue.join(), timeout=5)

            after = elevator.snapshot()
            self.assertEqual(after.floor, before.floor)
            self.assertEqual(after.status, DisplayStatus.Moving)
            self.assertEqual(elevator.controller.armed_timer(), TimerKind.Transit)
        finally:
            elevator.stop()
            await asyncio.wait_for(loop_task, timeout=5)
        self.assertFalse(elevator.running)


class TestRealisticScenario(unittest.IsolatedAsyncioTestCase):
    """End-to-end scripted scenario"""

    async def test_scenario_stop_order(self):
        """Test the scripted riders are served in scan order"""
        scenario = RealisticElevatorScenario(0.005)
        ok = await asyncio.wait_for(scenario.run_scenario(), timeout=30)
        self.assertTrue(ok, scenario.stops)
        self.assertEqual(scenario.stops, [5, 8, 3, 1, 2])


class TestElevatorConsole(unittest.IsolatedAsyncioTestCase):
    """Integration test class for the console front end"""

    async def test_line_reader_runs_on_daemon_thread(self):
        """Test the console reads input without holding up shutdown"""
        release = threading.Event()

        class BlockingStream:
            def __init__(self):
                self.lines = ["4\n"]

            def readline(self):
                if self.lines:
                    return self.lines.pop()
                release.wait(5)
                return ""

        lines = start_line_reader(BlockingStream(), asyncio.get_running_loop())
        self.assertEqual(await asyncio.wait_for(lines.get(), timeout=5), "4\n")
        readers = [t for t in threading.enumerate() if t.name == "elevator-console-stdin"]
        self.assertTrue(readers)
        self.assertTrue(all(t.daemon for t in readers))
        release.set()
        self.assertEqual(await asyncio.wait_for(lines.get(), timeout=5), "")

    async def test_console_session(self):
        """Test a scripted console session"""
        stdin = io.StringIO("-1\n2\n")
        stdout = io.StringIO()
        settings = load_settings({"time_unit_seconds": 0.001})
        snapshot = await asyncio.wait_for(run_console(settings, stdin, stdout), timeout=5)
        output = stdout.getvalue()
        self.assertIn("Current Floor:   1 Direction:   up Status: stopped", output)
        self.assertIn("Input Error: No down button for bottom floor: -1", output)
        self.assertTrue(snapshot.pending or snapshot.floor in (1, 2))


if __name__ == "__main__":
    unittest.main()
