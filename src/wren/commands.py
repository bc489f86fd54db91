"""Editor-facing command helpers.

Pure text functions behind the command surface: building the "modify"
prompt, cutting a selection out of a buffer, and the printable messages
for listing and switching models. Editors bind these to their own
commands; the ``wren`` CLI uses them directly.
"""

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wren.gateway import Gateway
    from wren.registry import ModelEntry


def build_modify_prompt(selected_text: str, instruction: str) -> str:
    return f"Modify the following text:\n\n{selected_text}\n\nInstructions: {instruction}"


def extract_selection(
    lines: Sequence[str],
    start: tuple[int, int],
    end: tuple[int, int],
) -> str:
    """Return the text between two ``(line, column)`` positions.

    Positions are 1-based and inclusive, the way editors report a visual
    selection. Columns past the end of a line are clamped.
    """
    (start_line, start_col), (end_line, end_col) = start, end
    if (end_line, end_col) < (start_line, start_col):
        (start_line, start_col), (end_line, end_col) = end, start
    if start_line < 1 or end_line > len(lines):
        msg = f"Selection {start_line}-{end_line} is outside 1-{len(lines)}"
        raise ValueError(msg)
    if start_col < 1 or end_col < 1:
        msg = f"Selection column {min(start_col, end_col)} is outside the line"
        raise ValueError(msg)

    selected = list(lines[start_line - 1 : end_line])
    if len(selected) == 1:
        selected[0] = selected[0][start_col - 1 : end_col]
    else:
        selected[0] = selected[0][start_col - 1 :]
        selected[-1] = selected[-1][:end_col]
    return "\n".join(selected)


def format_model_list(models: Iterable["ModelEntry"], active_id: str) -> str:
    lines = ["Available models:"]
    lines.extend(f"- {model.id} ({model.name})" for model in models)
    lines.append(f"Current model: {active_id}")
    return "\n".join(lines)


def switch_model(gateway: "Gateway", model_id: str) -> tuple[bool, str]:
    """Switch ``gateway`` to ``model_id`` and describe the outcome."""
    if gateway.set_model(model_id):
        return True, f"Switched to model: {model_id}"
    return False, f"Invalid model ID: {model_id}"
