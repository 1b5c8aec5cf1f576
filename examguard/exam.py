#!/usr/bin/env python3
"""
Proctored Exam CLI

Student-facing console for a proctored multiple-choice exam. Loads an exam
bank into the in-process gateway, joins or resumes the attempt stored on
this device, and runs the session until it finishes, times out or the
student leaves. Teacher actions are available as commands so the waiting
room, lockouts and overrides can be driven from the same terminal.
"""

import argparse
import getpass
import sys
from pathlib import Path
from typing import Optional

from .clock import SystemClock
from .config_loader import load_config
from .controller import ExamController, InitializationError, JoinError, join_exam
from .eventlog import SessionLog
from .gateway import GatewayError
from .local_gateway import LocalGateway
from .models import SessionConfig
from .sequencer import NoQuestionsAvailable
from .store import ACTIVE_STUDENT_ID, SessionStore
from .submission import FAILED, IGNORED, SKIPPED, NoOptionSelected
from .translations import TRANSLATIONS
from .views import render_screen


def app_dir() -> Path:
    """Directory holding banks/ and config.json."""
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    return Path(__file__).parent.parent


class ExamRunner:
    """Main CLI application controller."""

    def __init__(self):
        self.language = "en"
        self.messages = TRANSLATIONS["en"]
        self.config: Optional[SessionConfig] = None
        self.gateway: Optional[LocalGateway] = None
        self.store: Optional[SessionStore] = None
        self.session_log: Optional[SessionLog] = None
        self.controller: Optional[ExamController] = None
        self.left = False

    def _msg(self, key: str, **kwargs) -> str:
        template = self.messages.get(key, key)
        return template.format(**kwargs)

    def _prompt_language(self) -> str:
        prompt = TRANSLATIONS["en"]["prompt_language"]
        while True:
            choice = input(prompt).strip().lower()
            if choice in ("en", "english", "e", "a", "anglais"):
                return "en"
            if choice in ("fr", "french", "f", "français"):
                return "fr"
            print(TRANSLATIONS["en"]["invalid_language"])

    def _resolve_bank_path(self, bank_arg: str) -> Optional[Path]:
        """Accept a direct path or a file name inside banks/."""
        direct_path = Path(bank_arg)
        if direct_path.exists():
            return direct_path

        candidate = app_dir() / "banks" / bank_arg
        if candidate.exists():
            return candidate
        return None

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            description="Proctored Exam Client",
            formatter_class=argparse.RawDescriptionHelpFormatter
        )
        parser.add_argument(
            "--bank",
            required=True,
            help="Exam bank file: plain .json or encrypted (e.g., demo.json or exams.enc)"
        )
        parser.add_argument(
            "--key",
            help="Decryption key or password for an encrypted bank (prompted if omitted)"
        )
        parser.add_argument(
            "--state-dir",
            help="Directory for session state and session.log (default: ./state next to the executable)"
        )
        parser.add_argument(
            "--config",
            help="Path to session configuration file (default: config.json in executable directory)"
        )
        parser.add_argument(
            "--language",
            choices=["prompt", "en", "fr"],
            default=None,
            help="Interface language (default: from configuration)."
        )
        return parser

    def run(self, argv=None) -> int:
        """Main application entry point."""
        args = self.build_parser().parse_args(argv)

        try:
            config_path = Path(args.config) if args.config else None
            self.config = load_config(config_path)
        except ValueError as e:
            print(TRANSLATIONS["en"]["config_error"].format(error=e))
            return 1

        if args.language == "prompt":
            self.language = self._prompt_language()
        else:
            self.language = args.language or self.config.language
        self.messages = TRANSLATIONS[self.language]

        print(self._msg("header"))
        print(self._msg("title"))
        print(self._msg("header"))
        src = args.config if args.config else "config.json (default)"
        print(f"✓ {self._msg('config_default', src=src)}")

        bank_path = self._resolve_bank_path(args.bank)
        if bank_path is None:
            print(self._msg("bank_error", error=f"'{args.bank}' not found"))
            return 1

        key_input = args.key
        if bank_path.suffix.lower() != '.json' and not key_input:
            try:
                key_input = getpass.getpass(self._msg("ask_enc_pass", bank=bank_path.name)).strip()
            except (KeyboardInterrupt, EOFError):
                print(f"\n{self._msg('enc_exit')}")
                return 1
            if not key_input:
                print(self._msg("enc_error"))
                return 1

        print(f"\n{self._msg('bank_loading')}")
        try:
            self.gateway = LocalGateway.from_bank_file(bank_path, key_input, clock=SystemClock())
        except ValueError as e:
            print(self._msg("bank_error", error=e))
            return 1
        print(self._msg("bank_success"))

        state_dir = Path(args.state_dir) if args.state_dir else app_dir() / "state"
        state_dir.mkdir(parents=True, exist_ok=True)
        self.store = SessionStore(state_dir / "session_state.json")
        self.session_log = SessionLog(state_dir / "session.log")

        self.gateway.connect()
        try:
            if not self._start_session():
                return 1
            self.command_loop()
        finally:
            if self.controller and not self.left:
                self.controller.stop()
            self.gateway.disconnect()

        return 0

    def _start_session(self) -> bool:
        """Join if needed, then hydrate and start. Returns False to exit."""
        while True:
            if not self.store.get(ACTIVE_STUDENT_ID):
                if not self.join():
                    return False

            self.controller = ExamController(
                self.gateway, self.store, config=self.config,
                session_logger=self.session_log.log,
            )
            try:
                self.controller.hydrate()
            except InitializationError as e:
                print(self._msg("init_error", error=e))
                self.store.clear()
                continue
            except NoQuestionsAvailable:
                print(self._msg("no_questions"))
                return False

            self.controller.start()
            return True

    def join(self) -> bool:
        """Run the entry form until the student joins or aborts."""
        print(f"\n{self._msg('join_heading')}")
        while True:
            try:
                code = input(self._msg("ask_code"))
                first_name = input(self._msg("ask_first_name"))
                surname = input(self._msg("ask_surname"))
                grade = input(self._msg("ask_grade"))
            except (KeyboardInterrupt, EOFError):
                print(f"\n{self._msg('enc_exit')}")
                return False

            try:
                join_exam(self.gateway, self.store, code, first_name, surname, grade)
            except JoinError as e:
                print(self._msg("join_error", error=e))
                continue

            self.session_log.log("STUDENT_JOINED", f"Exam: {code.strip().upper()}")
            return True

    def command_loop(self):
        """Main interactive command loop."""
        print("\n" + self._msg("header"))
        print(self._msg("cmd_help_text"))
        print(self._msg("header") + "\n")
        print(render_screen(self.controller, self.language))

        while not self.left:
            try:
                if self.controller.session.is_terminal:
                    break

                cmd_line = input("\nexam> ").strip()
                if not cmd_line:
                    print(render_screen(self.controller, self.language))
                    continue

                parts = cmd_line.split()
                command = parts[0].lower()
                self.session_log.log("COMMAND_RUN", f"Command: {cmd_line}")

                if command == 'leave':
                    self.cmd_leave()
                    break
                elif command == 'help':
                    print(self._msg("cmd_help"))
                    continue
                elif command == 'select':
                    if len(parts) < 2:
                        print(self._msg("cmd_select_usage"))
                    else:
                        self.cmd_select(" ".join(parts[1:]))
                elif command == 'submit':
                    self.cmd_submit()
                elif command == 'solve':
                    if len(parts) < 2:
                        print(self._msg("cmd_solve_usage"))
                    else:
                        self.cmd_solve(parts[1])
                elif command == 'hide':
                    self.controller.on_visibility_change(True)
                elif command == 'show':
                    self.controller.on_visibility_change(False)
                elif command == 'blur':
                    self.controller.on_window_blur()
                elif command == 'time':
                    print(self._msg("cmd_time", remaining=self.controller.timer.format_remaining_time()))
                    continue
                elif command == 'status':
                    self.cmd_status()
                    continue
                elif command == 'teacher':
                    self.cmd_teacher(parts[1:])
                else:
                    print(self._msg("cmd_unknown", command=command))
                    continue

                print()
                print(render_screen(self.controller, self.language))

            except (KeyboardInterrupt, EOFError):
                print(self._msg("cmd_interrupt"))
            except Exception as e:
                print(self._msg("cmd_error", error=e))
                self.session_log.log("ERROR", str(e))

        if not self.left:
            print()
            print(render_screen(self.controller, self.language))
            if self.controller.session.is_terminal:
                # Attempt over: the next start on this device goes to the entry form
                self.controller.leave()
                self.left = True
                self.session_log.log("ATTEMPT_CLOSED", "Device state cleared after the final screen")

    def cmd_select(self, choice: str):
        try:
            option = self.controller.select(choice)
        except ValueError as e:
            print(self._msg("cmd_select_error", error=e))
            return
        letter = self.controller.session.current_question.letter_for(option)
        print(self._msg("cmd_select_ok", letter=letter, option=option))

    def cmd_submit(self):
        try:
            outcome = self.controller.submit()
        except NoOptionSelected:
            print(self._msg("no_option"))
            return

        if outcome == SKIPPED:
            print(self._msg("cmd_submit_skipped"))
        elif outcome == FAILED:
            print(self._msg("cmd_submit_failed"))
        elif outcome == IGNORED:
            print(self._msg("cmd_submit_ignored"))
        else:
            print(self._msg("cmd_submit_ok"))

    def cmd_solve(self, answer: str):
        if self.controller.solve(answer):
            print(self._msg("cmd_solve_ok"))
        else:
            print(self._msg("cmd_solve_wrong"))

    def cmd_status(self):
        session = self.controller.session
        with session.lock:
            print(self._msg(
                "cmd_status",
                name=session.student_name,
                status=session.status,
                answered=len(session.answered_question_ids),
                total=session.question_count,
                score=session.score,
            ))

    def cmd_teacher(self, args):
        """Act on the gateway the way the teacher's monitor would."""
        if not args:
            print(self._msg("cmd_teacher_usage"))
            return

        session = self.controller.session
        action = args[0].lower()
        try:
            if action == 'start':
                minutes = int(args[1]) if len(args) > 1 else None
                self.gateway.start_exam(session.exam_code, minutes)
            elif action == 'limit' and len(args) > 1:
                self.gateway.set_time_limit(session.exam_code, int(args[1]))
            elif action == 'block':
                minutes = float(args[1]) if len(args) > 1 else 2
                self.gateway.force_block(session.student_id, minutes)
            elif action == 'forgive':
                self.gateway.forgive(session.student_id)
            elif action == 'goto' and len(args) > 1:
                self.gateway.set_question_index(session.student_id, int(args[1]))
            else:
                print(self._msg("cmd_teacher_usage"))
                return
        except (GatewayError, ValueError) as e:
            print(self._msg("cmd_error", error=e))
            return
        self.session_log.log("TEACHER_ACTION", " ".join(args))

    def cmd_leave(self):
        self.controller.leave()
        self.left = True
        print(self._msg("cmd_leave"))


def main():
    """Entry point for the exam client."""
    runner = ExamRunner()
    sys.exit(runner.run())


if __name__ == "__main__":
    main()
