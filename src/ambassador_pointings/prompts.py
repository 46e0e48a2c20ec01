"""Operator input behind one interface.

Three interchangeable implementations are provided:
- PickerPrompter: prompt_toolkit inline picker with completion over the options
- NumberedPrompter: numbered list, answers read with prompt_toolkit line editing
- PlainPrompter: numbered list, answers read line by line from a stream

The update workflow and the shell only use `select_one`, `prompt_text` and
`confirm`, so any of them can be swapped in.
"""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from typing import IO, Optional, Sequence

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import DummyCompleter, WordCompleter
from prompt_toolkit.validation import DummyValidator, Validator
from rich.console import Console
from rich.markup import escape

from .config import Config
from .logging import get_logger

logger = get_logger("ambassador.shell")

YES_ANSWERS = {"y", "yes"}


class SelectionError(Exception):
    """Raised when the operator's choice does not name a listed option."""


def parse_choice(raw: str, options: Sequence[str], default: Optional[str] = None) -> str:
    """Map a 1-based numeric answer to one of `options`."""

    answer = raw.strip()
    if not answer:
        if default is not None:
            return default
        raise SelectionError("No choice entered.")
    if not answer.isdigit():
        raise SelectionError("Invalid choice.")
    index = int(answer)
    if index < 1 or index > len(options):
        raise SelectionError("Out of range.")
    return options[index - 1]


class Prompter(ABC):
    """Capability interface consumed by the shell and the update workflow."""

    def __init__(self, console: Console) -> None:
        self.console = console

    @abstractmethod
    def select_one(self, title: str, options: Sequence[str]) -> Optional[str]:
        """Return one of `options`, or None when the operator cancels."""

    @abstractmethod
    def read_line(self, label: str, default: str = "") -> str:
        """Read one raw answer, offering `default` for editing where supported."""

    def prompt_text(self, label: str, default: str = "") -> str:
        """Ask for free text; an empty answer keeps `default`."""

        answer = self.read_line(label, default).strip()
        return answer or default

    def confirm(self, prompt: str) -> bool:
        answer = self.prompt_text(f"{prompt} [y/N]", "")
        return answer.lower() in YES_ANSWERS

    def _show_numbered(self, title: str, options: Sequence[str]) -> None:
        self.console.print(f"{escape(title)}:")
        for index, option in enumerate(options, start=1):
            self.console.print(f"  {index:2d}) {escape(option)}", highlight=False)

    def _select_numbered(self, title: str, options: Sequence[str]) -> Optional[str]:
        if not options:
            return None
        self._show_numbered(title, options)
        raw = self.read_line(f"Enter choice [1-{len(options)}]:", "")
        return parse_choice(raw, options)


class _SessionPrompter(Prompter):
    """Shared prompt_toolkit session handling for terminal prompters."""

    def __init__(self, console: Console, session: Optional[PromptSession] = None) -> None:
        super().__init__(console)
        self._session = session

    @property
    def session(self) -> PromptSession:
        if self._session is None:
            self._session = PromptSession()
        return self._session

    def read_line(self, label: str, default: str = "") -> str:
        # The session keeps the last completer and validator, so reset both.
        return self.session.prompt(
            f"{label} ",
            default=default,
            completer=DummyCompleter(),
            validator=DummyValidator(),
        )


class PickerPrompter(_SessionPrompter):
    """Inline picker: options pop up as completions and typing filters them."""

    def select_one(self, title: str, options: Sequence[str]) -> Optional[str]:
        if not options:
            return None
        choices = set(options)
        completer = WordCompleter(list(options), sentence=True, match_middle=True, ignore_case=True)
        validator = Validator.from_callable(
            lambda text: not text.strip() or text.strip() in choices,
            error_message="Pick one of the listed options (Tab to browse, empty to cancel).",
            move_cursor_to_end=True,
        )
        try:
            answer = self.session.prompt(
                f"{title}: ",
                completer=completer,
                complete_while_typing=True,
                validator=validator,
                validate_while_typing=False,
                pre_run=lambda: self.session.app.current_buffer.start_completion(select_first=False),
            )
        except EOFError:
            return None
        return answer.strip() or None


class NumberedPrompter(_SessionPrompter):
    """Numbered menus with prompt_toolkit line editing for answers."""

    def select_one(self, title: str, options: Sequence[str]) -> Optional[str]:
        return self._select_numbered(title, options)


class PlainPrompter(Prompter):
    """Numbered menus and line reads from a plain stream, for non-terminals."""

    def __init__(self, console: Console, stream: Optional[IO[str]] = None) -> None:
        super().__init__(console)
        self.stream = stream if stream is not None else sys.stdin

    def select_one(self, title: str, options: Sequence[str]) -> Optional[str]:
        return self._select_numbered(title, options)

    def read_line(self, label: str, default: str = "") -> str:
        suffix = f" [{default}]" if default else ""
        self.console.print(f"{escape(label)}{escape(suffix)} ", end="", highlight=False)
        line = self.stream.readline()
        if not line:
            raise EOFError
        return line.rstrip("\n")


def choose_prompter(config: Config, console: Console, stdin: Optional[IO[str]] = None) -> Prompter:
    """Pick the richest prompter the current terminal supports."""

    stdin = stdin if stdin is not None else sys.stdin
    picker = config.picker
    if picker == "auto":
        interactive = stdin.isatty() and console.is_terminal
        picker = "picker" if interactive else "plain"

    logger.debug("Selected prompter", extra={"picker": picker})
    if picker == "picker":
        return PickerPrompter(console)
    if picker == "numbered":
        return NumberedPrompter(console)
    return PlainPrompter(console, stdin)
