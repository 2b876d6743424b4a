"""Yes/no confirmation prompts."""
import sys
from typing import Callable, Optional, TextIO

Confirm = Callable[[Optional[bool], str], bool]


def _suffix(default: Optional[bool]) -> str:
    if default is None:
        return "[y/n]"
    return "[Y/n]" if default else "[y/N]"


def confirm(
    default: Optional[bool],
    prompt: str,
    *,
    reader: Optional[Callable[[str], str]] = None,
    writer: Optional[TextIO] = None,
) -> bool:
    """Ask a yes/no question.

    Answers starting with y or n (any case) decide; anything else takes
    the default. With default None the question repeats until answered.
    End of input takes the default, or False when there is none.

    Args:
        default: True, False, or None for no default
        prompt: Question text, without the [y/n] suffix
        reader: Line reader taking the prompt text (default: input)
        writer: Stream for re-prompt hints (default: sys.stderr)
    """
    reader = reader or input
    writer = writer or sys.stderr
    while True:
        try:
            answer = reader(f"{prompt} {_suffix(default)} ")
        except EOFError:
            return default if default is not None else False

        answer = answer.strip().lower()
        if answer.startswith("y"):
            return True
        if answer.startswith("n"):
            return False
        if default is not None:
            return default
        writer.write("Please answer y or n.\n")
