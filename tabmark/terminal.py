"""Terminal interface using Blessed for display and Curtsies for input."""

import logging
import select
import sys
import termios
from typing import Optional

import blessed
from curtsies import Input

logger = logging.getLogger(__name__)


class TerminalInterface:
    """Handles terminal I/O using Blessed."""

    def __init__(self, terminal: Optional[blessed.Terminal] = None):
        """Initialize with a terminal instance (or create one)."""
        self.term = terminal or blessed.Terminal()
        self.is_fullscreen = False
        self._input: Optional[Input] = None
        # Virtual screen state for minimal updates
        self._last_lines: Optional[list[str]] = None
        self._last_status: Optional[str] = None

    def setup(self):
        """Enter fullscreen mode and prepare terminal."""
        print(self.term.enter_fullscreen)
        print(self.term.clear)
        self.is_fullscreen = True
        if self._input is None:
            try:
                # Enter raw mode immediately so reads work
                self._input = Input(keynames='curtsies')
                self._input.__enter__()
            except (OSError, termios.error) as e:
                logger.warning(f"Keyboard input unavailable: {e}")
                self._input = None

    def cleanup(self):
        """Exit fullscreen mode and restore terminal."""
        if self.is_fullscreen:
            print(self.term.exit_fullscreen)
            print(self.term.normal_cursor)
            self.is_fullscreen = False
        if self._input is not None:
            try:
                self._input.__exit__(None, None, None)
            except (OSError, termios.error) as e:
                logger.warning(f"Could not restore keyboard mode: {e}")
            finally:
                self._input = None

    def invalidate_frame(self) -> None:
        """Invalidate cached frame so next update does a full clear."""
        self._last_lines = None
        self._last_status = None

    def _compose_display_line(self, line: str, view_width: int,
                              selection: Optional[tuple[int, int]]) -> str:
        """Pad a line to the view width and reverse-video the selected columns."""
        text = line[:view_width].ljust(view_width)
        if not selection:
            return text
        start, end = selection
        return (text[:start] + self.term.reverse + text[start:end]
                + self.term.normal + text[end:])

    def update_frame(
        self,
        lines: list[str],
        cursor_y: int,
        cursor_x: int,
        status: str,
        selection_ranges: Optional[list] = None,
    ) -> None:
        """Diff against last frame and write only changes.

        Falls back to a full clear on first paint or when the line count changes.
        """
        view_width = self.term.width
        rows = self.height
        lines = (lines + [""] * rows)[:rows]
        if self._last_lines is None or len(self._last_lines) != len(lines):
            print(self.term.home + self.term.clear, end='')
            self._last_lines = ["" for _ in range(len(lines))]
            self._last_status = None

        for y, line in enumerate(lines):
            sel = selection_ranges[y] if selection_ranges and y < len(selection_ranges) else None
            new_disp = self._compose_display_line(line, view_width, sel)
            if new_disp != self._last_lines[y]:
                print(self.term.move(y, 0) + new_disp, end='')
                self._last_lines[y] = new_disp

        status_text = status[:view_width].ljust(view_width)
        if status_text != self._last_status:
            print(self.term.move(self.term.height - 1, 0) + self.term.reverse
                  + status_text + self.term.normal, end='')
            self._last_status = status_text

        print(self.term.move(cursor_y, cursor_x) + self.term.normal_cursor, end='', flush=True)

    def draw_prompt(self, prompt: str) -> None:
        """Show a prompt on the status line with the cursor after it."""
        text = prompt[:self.term.width]
        print(self.term.move(self.term.height - 1, 0) + text.ljust(self.term.width)
              + self.term.move(self.term.height - 1, len(text)), end='', flush=True)
        self._last_status = None

    def draw_error_message(self, message1: str, message2: str = ""):
        """Draw an error message in the center of the screen."""
        print(self.term.home + self.term.clear, end='')
        center_y = self.term.height // 2
        for offset, message in enumerate((message1, message2)):
            if message:
                x = max(0, (self.term.width - len(message)) // 2)
                print(self.term.move(center_y - 1 + offset, x) + message, end='')
        help_text = "Ctrl-Q to quit | Resize terminal to continue"
        print(self.term.move(self.term.height - 1, max(0, (self.term.width - len(help_text)) // 2))
              + help_text, end='', flush=True)
        self.invalidate_frame()

    def get_key(self, timeout=None):
        """Get a single keypress from the user.

        Args:
            timeout: Timeout in seconds (None for blocking, 0 for non-blocking)

        Returns:
            The curtsies key name, or None if nothing arrived.
        """
        if self._input is None:
            return None
        if timeout is not None:
            r, _, _ = select.select([sys.stdin], [], [], float(timeout))
            if not r:
                return None
        return str(next(self._input))

    @property
    def width(self):
        """Terminal width in columns."""
        return self.term.width

    @property
    def height(self):
        """Terminal height in rows (excluding status line)."""
        return self.term.height - 1  # Reserve one line for status
