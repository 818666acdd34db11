# --- API DOCUMENTATION for snova/prompt_engine.py ---
#
# **Purpose:** A key-driven line editor for raw-mode terminals with an
# incrementally filtered, scrollable candidate window drawn above the input
# line. Every redraw overwrites the previous one in place; once a prompt is
# committed only a single transcript line remains on screen.
#
# **Public Classes:**
#
# class PromptEngine:
#     async def run(self, prefix, help=None, expect=None, mode=PromptMode.LINE,
#                   source=None) -> PromptResult:
#         """
#         Reads one value.
#
#         Modes:
#             LINE:    plain line read; needs non-empty input when `expect` is set.
#             CHOICE:  commits only on a highlighted candidate from `source`.
#             SUGGEST: like CHOICE, but commits the typed text when no
#                      candidate is highlighted.
#
#         `help` is drawn between the candidates and the input line: a plain
#         string may use *bold* and _underline_ markup, formatted text is
#         drawn as given.
#
#         Keys: Enter commits, Ctrl-D/Esc dismisses this prompt (the result has
#         `dismissed=True`), Ctrl-C raises PromptInterrupted.
#         """
#
# class ChoiceSource:
#     def filter(self, query: str) -> list:
#         """Items whose display text contains the query, case-insensitive."""
#
# --- END API DOCUMENTATION ---

# snova/prompt_engine.py

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Optional, Protocol, Sequence

from prompt_toolkit.formatted_text import (
    AnyFormattedText, FormattedText, StyleAndTextTuples, fragment_list_len, split_lines, to_formatted_text,
)
from prompt_toolkit.keys import Keys

from snova.command_model import ValueType
from snova.errors import PromptInterrupted
from snova.terminal import Terminal
from snova.text_style import fmt_text, strip_markup

logger = logging.getLogger(__name__)

DEFAULT_VISIBLE_ROWS = 8

_COMMIT_KEYS = (Keys.ControlM, Keys.ControlJ)
_DISMISS_KEYS = (Keys.ControlD, Keys.Escape)


class PromptMode(Enum):
    LINE = "line"
    CHOICE = "choice"
    SUGGEST = "suggest"


class Choice(Protocol):
    @property
    def text(self) -> str: ...

    @property
    def identity(self) -> Any: ...


@dataclass(frozen=True)
class Suggestion:
    """A free string offered as a candidate."""
    value: str

    @property
    def text(self) -> str:
        return self.value

    @property
    def identity(self):
        return self.value


class ChoiceSource:
    def __init__(self, items: Iterable[Choice]):
        self.items = list(items)

    def filter(self, query: str) -> List[Choice]:
        query = query.lower()
        seen = set()
        matches = []
        for item in self.items:
            if item.identity in seen:
                continue
            if query in strip_markup(item.text).lower():
                seen.add(item.identity)
                matches.append(item)
        return matches


@dataclass
class PromptResult:
    choice: Optional[Choice] = None
    text: str = ""
    dismissed: bool = False

    @property
    def value(self) -> str:
        if self.choice is not None:
            return self.choice.text
        return self.text


@dataclass
class LineState:
    """Editing state of a single prompt invocation."""
    buffer: str = ""
    cursor: int = 0
    # Index into the filtered candidates, None when nothing is highlighted
    selected: Optional[int] = 0
    scroll_offset: int = 0

    # --- Editing ---

    def insert(self, text: str, expect: Optional[ValueType] = None) -> None:
        for c in text:
            if not c.isprintable():
                continue
            if expect is not None and not expect.is_valid_char(c):
                continue
            self.buffer = self.buffer[:self.cursor] + c + self.buffer[self.cursor:]
            self.cursor += 1

    def backspace(self) -> None:
        if self.cursor > 0:
            self.buffer = self.buffer[:self.cursor - 1] + self.buffer[self.cursor:]
            self.cursor -= 1

    def delete(self) -> None:
        self.buffer = self.buffer[:self.cursor] + self.buffer[self.cursor + 1:]

    def move_left(self) -> None:
        self.cursor = max(0, self.cursor - 1)

    def move_right(self) -> None:
        self.cursor = min(len(self.buffer), self.cursor + 1)

    def move_home(self) -> None:
        self.cursor = 0

    def move_end(self) -> None:
        self.cursor = len(self.buffer)

    def kill_to_start(self) -> None:
        self.buffer = self.buffer[self.cursor:]
        self.cursor = 0

    # --- Selection ---

    def _follow_selection(self, height: int) -> None:
        if self.selected is None:
            return
        if self.selected < self.scroll_offset:
            self.scroll_offset = self.selected
        elif self.selected >= self.scroll_offset + height:
            self.scroll_offset = self.selected - height + 1

    def clamp(self, count: int, height: int, allow_none: bool = False) -> None:
        """Fits selection and scroll position to a (re)filtered list of `count` items."""
        if count == 0:
            self.selected = None if allow_none else 0
            self.scroll_offset = 0
            return
        if self.selected is not None:
            self.selected = min(max(self.selected, 0), count - 1)
        self.scroll_offset = max(0, min(self.scroll_offset, count - height))
        self._follow_selection(height)

    def move_down(self, count: int, height: int) -> None:
        if count == 0:
            return
        if self.selected is None:
            self.selected = 0
        elif self.selected < count - 1:
            self.selected += 1
        self._follow_selection(height)

    def move_up(self, height: int, allow_none: bool = False) -> None:
        if self.selected is None:
            return
        if self.selected > 0:
            self.selected -= 1
        elif allow_none:
            # Back to free text
            self.selected = None
        self._follow_selection(height)


def _help_lines(help: Optional[AnyFormattedText]) -> List[StyleAndTextTuples]:
    """Plain strings carry markup; formatted text is shown as given."""
    if not help:
        return []
    if isinstance(help, str):
        return [fmt_text(line, "class:help") for line in help.splitlines()]
    return list(split_lines(to_formatted_text(help)))


def _truncate(fragments: Sequence, width: int) -> FormattedText:
    result = []
    for style, text, *_ in fragments:
        if width <= 0:
            break
        result.append((style, text[:width]))
        width -= len(text)
    return FormattedText(result)


class PromptEngine:
    """The main class for reading values from the user."""

    def __init__(self, terminal: Terminal, visible_rows: int = DEFAULT_VISIBLE_ROWS):
        self.terminal = terminal
        self.visible_rows = max(1, visible_rows)

    async def run(self, prefix: str, help: Optional[AnyFormattedText] = None, expect: Optional[ValueType] = None,
                  mode: PromptMode = PromptMode.LINE, source: Optional[ChoiceSource] = None) -> PromptResult:
        if mode is not PromptMode.LINE and source is None:
            raise ValueError(f"{mode.name} prompt needs a candidate source")

        allow_none = mode is PromptMode.SUGGEST
        state = LineState(selected=None if allow_none else 0)
        logger.debug(f"Prompt '{prefix}' started in {mode.name} mode.")

        while True:
            candidates = source.filter(state.buffer) if source is not None else []
            state.clamp(len(candidates), self.visible_rows, allow_none)
            self._render(prefix, help, state, candidates, mode)

            key_press = await self.terminal.read_key()
            key = key_press.key

            if key == Keys.ControlC:
                self._finish(FormattedText([("class:prefix", prefix), ("", f" {state.buffer}")]))
                logger.info(f"Prompt '{prefix}' interrupted.")
                raise PromptInterrupted()

            if key in _DISMISS_KEYS:
                self._finish(None)
                logger.debug(f"Prompt '{prefix}' dismissed.")
                return PromptResult(text=state.buffer, dismissed=True)

            if key in _COMMIT_KEYS:
                result = self._commit(state, candidates, mode, expect)
                if result is None:
                    continue
                shown = fmt_text(result.choice.text) if result.choice is not None else [("", result.text)]
                self._finish(FormattedText([("class:prefix", prefix), ("", " ")] + list(shown)))
                return result

            self._apply(key_press, state, expect, len(candidates), allow_none)

    def _commit(self, state: LineState, candidates: List[Choice], mode: PromptMode,
                expect: Optional[ValueType]) -> Optional[PromptResult]:
        """Returns the result for Enter, or None when Enter cannot commit yet."""
        if mode is PromptMode.CHOICE:
            if not candidates or state.selected is None:
                return None
            return PromptResult(choice=candidates[state.selected], text=state.buffer)

        if mode is PromptMode.SUGGEST and state.selected is not None and candidates:
            return PromptResult(choice=candidates[state.selected], text=state.buffer)

        if expect is not None and not state.buffer:
            return None
        return PromptResult(text=state.buffer)

    def _apply(self, key_press, state: LineState, expect: Optional[ValueType],
               count: int, allow_none: bool) -> None:
        key = key_press.key

        if not isinstance(key, Keys):
            state.insert(key, expect)
        elif key == Keys.BracketedPaste:
            state.insert(key_press.data.replace("\r", "").replace("\n", ""), expect)
        elif key == Keys.ControlH:
            state.backspace()
        elif key == Keys.Delete:
            state.delete()
        elif key == Keys.Left:
            state.move_left()
        elif key == Keys.Right:
            state.move_right()
        elif key in (Keys.Home, Keys.ControlA):
            state.move_home()
        elif key in (Keys.End, Keys.ControlE):
            state.move_end()
        elif key == Keys.ControlU:
            state.kill_to_start()
        elif key == Keys.Up:
            state.move_up(self.visible_rows, allow_none)
        elif key == Keys.Down:
            state.move_down(count, self.visible_rows)

    # --- Rendering ---

    def _render(self, prefix: str, help: Optional[AnyFormattedText], state: LineState,
                candidates: List[Choice], mode: PromptMode) -> None:
        t = self.terminal
        columns = max(t.columns, 10)
        t.rewind()
        rows = 0

        if mode is not PromptMode.LINE:
            window = candidates[state.scroll_offset:state.scroll_offset + self.visible_rows]
            # Empty rows first so the list sits right above the input line
            for _ in range(self.visible_rows - len(window)):
                t.newline()
            for i, item in enumerate(window, start=state.scroll_offset):
                t.write_line(self._candidate_line(item, i == state.selected, columns))
            rows += self.visible_rows

        for line in _help_lines(help):
            t.write_line(line)
            rows += max(1, -(-fragment_list_len(line) // columns))

        t.write_styled(FormattedText([("class:prefix", prefix), ("", f" {state.buffer}")]))
        offset = len(prefix) + 1
        cursor_row = self._place_cursor(offset + len(state.buffer), offset + state.cursor, columns)
        t.reserved_rows = rows + cursor_row
        t.flush()

    def _place_cursor(self, line_length: int, position: int, columns: int) -> int:
        """
        Moves the cursor from the end of the input line to `position` and
        returns its row within the (possibly wrapped) line.

        Terminals defer the wrap after the last column, so a line exactly
        `columns` wide still leaves the cursor on its first row.
        """
        t = self.terminal
        end_row = max(0, line_length - 1) // columns
        if position == line_length:
            return end_row
        row, column = divmod(position, columns)
        t.move_cursor_up(end_row - row)
        t.move_to_column(column)
        return row

    def _candidate_line(self, item: Choice, selected: bool, columns: int) -> FormattedText:
        if selected:
            fragments = [("class:marker", "> ")] + list(fmt_text(item.text, "class:selected"))
        else:
            fragments = [("", "  ")] + list(fmt_text(item.text))
        return _truncate(fragments, columns - 1)

    def _finish(self, transcript: Optional[FormattedText]) -> None:
        t = self.terminal
        t.rewind()
        if transcript is not None:
            t.write_line(transcript)
        t.flush()
