"""Terminal UI helpers: prompt_toolkit prompts and rich preview tables.

Workflows never call these directly; they receive ``Confirm``/``Ask``
callables so tests can script answers. Every prompt accepts an optional
``session`` whose input/output are reused (e.g. a pipe input in tests).
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import asdict, is_dataclass
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.validation import ValidationError, Validator
from rich.console import Console
from rich.table import Table

type Confirm = Callable[[str], bool]
type Ask = Callable[[str, str], str]

_YES = {"y", "yes"}
_NO = {"n", "no"}

console = Console()


def _session(session: PromptSession | None) -> PromptSession:
    if session is None:
        return PromptSession()
    return PromptSession(
        input=getattr(session, "input", None),
        output=getattr(session, "output", None),
    )


class _YesNo(Validator):
    def validate(self, document) -> None:
        if document.text.strip().lower() not in _YES | _NO | {""}:
            raise ValidationError(message="Answer y or n")


class _NonEmpty(Validator):
    def validate(self, document) -> None:
        if not document.text.strip():
            raise ValidationError(message="A value is required")


def confirm(message: str = "Continue?", *, session: PromptSession | None = None) -> bool:
    """Ask a yes/no question; Enter alone means no."""

    answer = _session(session).prompt(
        f"{message} [y/N] ", validator=_YesNo(), validate_while_typing=False
    )
    return answer.strip().lower() in _YES


def ask(message: str, default: str = "", *, session: PromptSession | None = None) -> str:
    """Ask for a non-empty line of text, pre-filled with ``default``."""

    answer = _session(session).prompt(
        f"{message} ", default=default, validator=_NonEmpty(), validate_while_typing=False
    )
    return answer.strip()


def _cell(value: Any) -> str:
    return "" if value is None else str(value)


def render_table(
    rows: Iterable[Any],
    columns: Sequence[str],
    *,
    title: str | None = None,
    out: Console | None = None,
) -> None:
    """Print ``rows`` (dataclasses or mappings) as a table of ``columns``."""

    table = Table(title=title)
    for name in columns:
        table.add_column(name, justify="right" if name == "amount" else "left")
    for row in rows:
        data: Mapping[str, Any] = asdict(row) if is_dataclass(row) else row
        table.add_row(*(_cell(data.get(name)) for name in columns))
    (out or console).print(table)


__all__ = ["Confirm", "Ask", "confirm", "ask", "render_table", "console"]
