# snova/terminal.py

import asyncio
import contextlib
import logging
import sys
from collections import deque
from typing import Deque, Iterator, Optional

from prompt_toolkit.formatted_text import AnyFormattedText, to_formatted_text
from prompt_toolkit.input import Input, create_input
from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.output import Output, create_output
from prompt_toolkit.renderer import print_formatted_text
from prompt_toolkit.styles import BaseStyle, Style

from snova.errors import TerminalError

logger = logging.getLogger(__name__)


class Terminal:
    """
    The terminal owned by one wizard session.

    Wraps prompt_toolkit's Input (raw mode, key decoding) and Output (styled
    text, cursor movement). It also remembers how many rows above the cursor
    belong to the prompt currently on screen, so the next redraw can go back
    and overwrite them.
    """

    def __init__(self, input: Optional[Input] = None, output: Optional[Output] = None,
                 style: Optional[BaseStyle] = None):
        self.input = input or create_input()
        # The UI goes to stderr, stdout is reserved for the finished command
        self.output = output or create_output(stdout=sys.stderr)
        self.style = style or Style([])
        self.reserved_rows = 0
        self._pending: Deque[KeyPress] = deque()

    @contextlib.contextmanager
    def session(self) -> Iterator["Terminal"]:
        """Raw mode for the duration of the block, restored on every exit path."""
        logger.debug("Entering raw mode.")
        with self.input.raw_mode():
            try:
                yield self
            finally:
                try:
                    self.rewind()
                    self.output.reset_attributes()
                    self.output.show_cursor()
                    self.output.flush()
                except OSError as e:
                    logger.error(f"Could not clean up the terminal: {e}")
                logger.debug("Leaving raw mode.")

    # --- Input ---

    async def read_key(self) -> KeyPress:
        """Waits for the next key press."""
        while not self._pending:
            if self.input.closed:
                raise TerminalError("Input stream closed")

            ready = asyncio.Event()
            try:
                with self.input.attach(ready.set):
                    await ready.wait()
                self._pending.extend(self.input.read_keys())
                # A lone escape byte stays in the parser until flushed
                self._pending.extend(self.input.flush_keys())
            except (OSError, EOFError) as e:
                raise TerminalError(f"Could not read from the terminal: {e}") from e
        return self._pending.popleft()

    # --- Output ---

    @property
    def columns(self) -> int:
        return self.output.get_size().columns

    def write_styled(self, text: AnyFormattedText) -> None:
        try:
            print_formatted_text(self.output, to_formatted_text(text), self.style)
        except OSError as e:
            raise TerminalError(f"Could not write to the terminal: {e}") from e

    def newline(self) -> None:
        self.output.write_raw("\r\n")

    def write_line(self, text: AnyFormattedText) -> None:
        self.write_styled(text)
        self.newline()

    def move_cursor_up(self, amount: int) -> None:
        if amount > 0:
            self.output.cursor_up(amount)

    def move_to_column(self, column: int) -> None:
        self.output.write_raw("\r")
        if column > 0:
            self.output.cursor_forward(column)

    def rewind(self) -> None:
        """Moves back to the first reserved row and clears everything below."""
        self.move_cursor_up(self.reserved_rows)
        self.output.write_raw("\r")
        self.output.erase_down()
        self.reserved_rows = 0

    def flush(self) -> None:
        try:
            self.output.flush()
        except OSError as e:
            raise TerminalError(f"Could not write to the terminal: {e}") from e
