"""
Tests for screen rendering.

Tests that exactly one full-screen view matches each session state,
in English and French.
"""

import random
from pathlib import Path

# Add parent directory to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from examguard.clock import ManualClock
from examguard.controller import ExamController, join_exam
from examguard.local_gateway import LocalGateway
from examguard.models import SessionConfig, Status
from examguard.scheduling import run_inline
from examguard.store import SessionStore
from examguard.views import format_countdown, render_screen

BANK = {'exams': [{
    'code': 'GEO1',
    'questions': [
        {'id': 'g1', 'text': 'Capital of France?', 'options': ['Lyon', 'Paris', 'Nice'], 'answer': 'B'},
        {'id': 'g2', 'text': 'Longest river?', 'options': ['Nile', 'Seine'], 'answer': 'A'},
    ],
}]}


def make_controller():
    clock = ManualClock()
    gateway = LocalGateway(BANK, clock=clock)
    store = SessionStore()
    join_exam(gateway, store, "GEO1", "Jo", "Doe", "8")
    controller = ExamController(gateway, store, config=SessionConfig(), clock=clock,
                                dispatch=run_inline, rng=random.Random(0))
    return controller, gateway, clock


class TestFormatCountdown:
    """Test m:ss formatting."""

    def test_values(self):
        assert format_countdown(125) == "2:05"
        assert format_countdown(60) == "1:00"
        assert format_countdown(0) == "0:00"
        assert format_countdown(-4) == "0:00"


class TestScreens:
    """Test one screen per status."""

    def test_loading(self):
        controller, _, _ = make_controller()

        assert render_screen(controller) == "Loading..."

    def test_waiting_room(self):
        controller, _, _ = make_controller()
        controller.hydrate()

        screen = render_screen(controller)

        assert "WAITING ROOM" in screen
        assert "Jo Doe (Grade 8)" in screen
        assert "GEO1" in screen

    def test_active_question(self):
        controller, gateway, _ = make_controller()
        controller.hydrate()
        gateway.start_exam("GEO1", 15)
        controller.reconciler.apply_exam_update({'status': 'live', 'time_limit': 15})
        question = controller.session.current_question

        screen = render_screen(controller)

        assert "Q: 1 / 2" in screen
        assert "Time left: 00:15:00" in screen
        assert question.text in screen
        assert f"A) {question.options[0]}" in screen
        assert "WAITING ROOM" not in screen

    def test_selection_marker(self):
        controller, _, _ = make_controller()
        controller.hydrate()
        controller.reconciler.apply_exam_update({'status': 'live', 'time_limit': 15})
        option = controller.select("B")

        screen = render_screen(controller)

        assert f"> B) {option}" in screen
        assert "Selected: B" in screen

    def test_detained(self):
        controller, _, _ = make_controller()
        controller.hydrate()
        controller.reconciler.apply_exam_update({'status': 'live', 'time_limit': 15})
        controller.detention.attach()
        controller.on_window_blur()

        screen = render_screen(controller)

        assert "LOCKED OUT" in screen
        assert "2:00" in screen
        assert f"{controller.detention.challenge.text} = ?" in screen
        assert "Q: 1 / 2" not in screen

    def test_finished(self):
        controller, _, _ = make_controller()
        controller.hydrate()
        controller.reconciler.apply_exam_update({'status': 'live', 'time_limit': 15})
        for _ in range(2):
            controller.select("A")
            controller.submit()

        assert controller.screen() == Status.FINISHED
        assert "EXAM COMPLETED" in render_screen(controller)

    def test_timed_out(self):
        controller, _, clock = make_controller()
        controller.hydrate()
        controller.reconciler.apply_exam_update({'status': 'live', 'time_limit': 15})
        clock.advance(minutes=16)
        controller.timer.tick()

        screen = render_screen(controller)

        assert "TIME IS UP" in screen
        assert "Score: 0" in screen

    def test_french(self):
        controller, _, _ = make_controller()
        controller.hydrate()

        assert "SALLE D'ATTENTE" in render_screen(controller, "fr")
