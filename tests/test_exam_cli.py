"""
Tests for the exam console.

Drives ExamRunner.run with scripted input against the demo bank:
- Joining, going live from a teacher command and answering
- Leaving clears the device state
- Startup errors (missing bank, invalid config)
"""

import json
import tempfile
from unittest.mock import patch
from pathlib import Path

# Add parent directory to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from examguard.exam import ExamRunner

DEMO_BANK = str(Path(__file__).parent.parent / "banks" / "demo.json")


def run_with_input(tmpdir, lines, extra_args=None):
    runner = ExamRunner()
    argv = [
        "--bank", DEMO_BANK,
        "--state-dir", str(Path(tmpdir) / "state"),
        "--config", str(Path(tmpdir) / "missing.json"),
        "--language", "en",
    ] + (extra_args or [])
    with patch('builtins.input', side_effect=lines):
        code = runner.run(argv)
    return runner, code


class TestSession:
    """Test a full console session."""

    def test_join_answer_and_leave(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            runner, code = run_with_input(tmpdir, [
                "demo01", "Ada", "Lovelace", "10",
                "teacher start 5",
                "submit",
                "select A",
                "submit",
                "status",
                "leave",
            ])

            state = json.loads((Path(tmpdir) / "state" / "session_state.json").read_text(encoding='utf-8'))
            log_text = (Path(tmpdir) / "state" / "session.log").read_text(encoding='utf-8')

        out = capsys.readouterr().out
        assert code == 0
        assert runner.left
        assert "WAITING ROOM" in out
        assert "YOU MUST SELECT AN ANSWER!" in out
        assert "Q: 2 / 5" in out
        assert state == {}
        assert "STUDENT_JOINED" in runner.session_log.events()
        assert "TEACHER_ACTION" in runner.session_log.events()
        assert "ANSWER_SUBMITTED" in runner.session_log.events()
        assert "] - SESSION_STOP - " in log_text

    def test_finished_attempt_clears_device_state(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            runner, code = run_with_input(
                tmpdir,
                ["DEMO01", "Ada", "Lovelace", "10", "teacher start 5"] + ["select A", "submit"] * 5,
            )

            state = json.loads((Path(tmpdir) / "state" / "session_state.json").read_text(encoding='utf-8'))

        out = capsys.readouterr().out
        assert code == 0
        assert "EXAM COMPLETED" in out
        assert state == {}
        assert runner.left
        assert "ATTEMPT_CLOSED" in runner.session_log.events()

    def test_unknown_code_asks_again(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            _, code = run_with_input(tmpdir, [
                "NOPE", "Ada", "Lovelace", "10",
                "DEMO01", "Ada", "Lovelace", "10",
                "leave",
            ])

        assert code == 0
        assert 'Exam Code "NOPE" not found!' in capsys.readouterr().out

    def test_unknown_command(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            run_with_input(tmpdir, ["DEMO01", "Ada", "Lovelace", "10", "dance", "leave"])

        assert "dance" in capsys.readouterr().out


class TestStartupErrors:
    """Test failures before the session starts."""

    def test_missing_bank(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            runner = ExamRunner()
            code = runner.run(["--bank", str(Path(tmpdir) / "none.json"),
                               "--config", str(Path(tmpdir) / "missing.json")])

        assert code == 1
        assert "Failed to load the exam bank" in capsys.readouterr().out

    def test_invalid_config(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "config.json"
            config_path.write_text('{"language": "de"}', encoding='utf-8')

            code = ExamRunner().run(["--bank", DEMO_BANK, "--config", str(config_path)])

        assert code == 1
        assert "Unsupported language" in capsys.readouterr().out
