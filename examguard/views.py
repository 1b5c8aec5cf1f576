"""
Screen rendering.

Exactly one full-screen view is shown at a time, chosen by the session
status: loading, waiting room, active question, lockout, finished or
timed out.
"""

from typing import Dict, List

from .controller import SCREEN_LOADING
from .models import Status, option_letter
from .translations import TRANSLATIONS


def format_countdown(seconds: int) -> str:
    """Format a detention countdown as m:ss."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


def render_screen(controller, language: str = "en") -> str:
    """Render the screen that matches the controller's current state."""
    messages = TRANSLATIONS.get(language, TRANSLATIONS["en"])
    screen = controller.screen()

    if screen == SCREEN_LOADING:
        lines = [messages["loading"]]
    elif screen == Status.WAITING:
        lines = _render_waiting(controller, messages)
    elif screen == Status.ACTIVE:
        lines = _render_active(controller, messages)
    elif screen == Status.DETAINED:
        lines = _render_detained(controller, messages)
    elif screen == Status.FINISHED:
        lines = _render_terminal(controller, messages, "finished_title", "finished_body")
    else:
        lines = _render_terminal(controller, messages, "timed_out_title", "timed_out_body")

    return "\n".join(lines)


def _frame(messages: Dict[str, str], title: str) -> List[str]:
    return [messages["header"], title, messages["header"]]


def _render_waiting(controller, messages: Dict[str, str]) -> List[str]:
    session = controller.session
    lines = _frame(messages, messages["waiting_title"])
    lines.append(messages["waiting_body"].format(name=session.student_name))
    lines.append(messages["waiting_code"].format(code=session.exam_code))
    return lines


def _render_active(controller, messages: Dict[str, str]) -> List[str]:
    session = controller.session
    with session.lock:
        question = session.current_question
        position = session.current_question_index + 1
        total = session.question_count
        selected = session.selected_option

    lines = [
        messages["active_progress"].format(position=position, total=total),
        messages["active_time"].format(remaining=controller.timer.format_remaining_time()),
        "",
    ]
    if question is None:
        return lines

    lines.append(question.text)
    lines.append("")
    for i, option in enumerate(question.options):
        marker = ">" if option == selected else " "
        lines.append(f" {marker} {option_letter(i)}) {option}")
    lines.append("")
    if selected:
        lines.append(messages["active_selected"].format(letter=question.letter_for(selected)))
    lines.append(messages["active_hint"])
    return lines


def _render_detained(controller, messages: Dict[str, str]) -> List[str]:
    detention = controller.detention
    lines = _frame(messages, messages["detained_title"])
    lines.append(messages["detained_body"])
    lines.append(messages["detained_countdown"].format(
        countdown=format_countdown(detention.remaining_seconds())))
    lines.append("")
    lines.append(messages["detained_challenge"].format(problem=detention.challenge.text))
    lines.append(messages["detained_hint"].format(
        seconds=controller.config.detention_reduction_seconds))
    return lines


def _render_terminal(controller, messages: Dict[str, str], title_key: str, body_key: str) -> List[str]:
    lines = _frame(messages, messages[title_key])
    lines.append(messages[body_key])
    lines.append(messages["score_line"].format(score=controller.session.score))
    return lines
