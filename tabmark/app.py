"""Terminal application: event loop, prompts and status line."""

import logging
import os
import select
import signal
import sys
import termios
from typing import Optional

from .commands import CommandRegistry
from .clipboard import ClipboardManager
from .constants import EditorConstants
from .editing import TabEditor
from .interchange import export_filename
from .keyboard import KeyboardHandler, KeyEvent, KeyType
from .storage import DocumentStore, export_to_file, import_from_file
from .terminal import TerminalInterface
from .view import TerminalTabView

logger = logging.getLogger(__name__)

PROMPTS = {
    'export': "Export to: ",
    'import': "Import from (empty for clipboard): ",
    'line_length': "Line length ({}-{}): ".format(EditorConstants.MIN_LINE_LENGTH,
                                                  EditorConstants.MAX_LINE_LENGTH),
    'clear_all': "Clear the whole document? (y/n): ",
}

HELP_LINES = [
    "",
    "FILE                         NAVIGATION",
    "  Ctrl-S    Export text        Arrows     Move",
    "  Ctrl-R    Import text        Tab        Next bar / grid",
    "  Ctrl-L    Line length        PgUp/PgDn  Previous / next grid",
    "  Ctrl-Q    Quit               Home/End   Line start / end",
    "  F1        Help               Shift-Arr  Select",
    "",
    "EDITING                      BLOCKS",
    "  Insert    Cycle edit mode    Ctrl-N     New grid",
    "  |         Bar                Ctrl-O     New text block",
    "  Enter     Bar, next string   Alt-Bksp   Delete block",
    "  Ctrl-K    Clear cells        Alt-Up/Dn  Move block",
    "  Ctrl-X/C  Cut / copy         Ctrl-P     Pad caption to cursor",
    "  Ctrl-V    Paste              Ctrl-W     Note at cursor",
    "  Ctrl-Z    Undo               Ctrl-U     Clear document",
]


class TabApp:
    """Main tab editor application controller."""

    def __init__(self, store: Optional[DocumentStore] = None,
                 terminal: Optional[TerminalInterface] = None):
        """Initialize the editor components."""
        self.terminal = terminal or TerminalInterface()
        self.keyboard = KeyboardHandler(self.terminal)
        self.view = TerminalTabView(num_rows=self.terminal.height, num_cols=self.terminal.width)
        self.store = store if store is not None else DocumentStore()
        self.editor = TabEditor(view=self.view, store=self.store)
        self.view.render()
        self.command_registry = CommandRegistry()
        self.running = False
        self.error_mode = False  # True when terminal is too narrow
        self.status_message: Optional[str] = None
        self.prompt_mode: Optional[str] = None  # None, 'export', 'import', 'line_length' or 'clear_all'
        self.prompt_input = ""
        self.help_visible = False
        self._resize_pipe_r: Optional[int] = None
        self._resize_pipe_w: Optional[int] = None
        self._ctrl_c_pressed = False

    def load_state(self) -> bool:
        """Restore the persisted document, if there is one."""
        return self.store.load_into(self.editor)

    def import_file(self, filename: str) -> bool:
        if import_from_file(self.editor, filename):
            self.status_message = f"Imported {filename}"
            return True
        self.status_message = f"Error: Cannot read {filename}"
        return False

    def import_clipboard(self) -> bool:
        content = ClipboardManager.paste_text()
        if content is None:
            self.status_message = "Clipboard is empty"
            return False
        self.editor.import_text(content)
        self.status_message = "Imported from clipboard"
        return True

    def default_export_name(self) -> str:
        return export_filename(self.editor.document.blocks)

    def start_prompt(self, mode: str, initial: str = ""):
        self.prompt_mode = mode
        self.prompt_input = initial

    def show_help(self):
        self.help_visible = True

    def hide_help(self):
        self.help_visible = False
        self.terminal.invalidate_frame()

    def _handle_resize(self, signum, frame):
        """Handle terminal resize signal."""
        del signum, frame  # Unused
        os.write(self._resize_pipe_w, b'R')

    def _handle_sigint(self, signum, frame):
        """Handle SIGINT (Ctrl-C) - treat as copy command."""
        del signum, frame  # Unused
        self._ctrl_c_pressed = True
        os.write(self._resize_pipe_w, b'C')

    def run(self):
        """Run the main editor loop."""
        self._resize_pipe_r, self._resize_pipe_w = os.pipe()
        self.terminal.setup()
        self.running = True
        original_winch_handler = signal.signal(signal.SIGWINCH, self._handle_resize)
        original_int_handler = signal.signal(signal.SIGINT, self._handle_sigint)

        try:
            with self.terminal.term.cbreak():
                old_settings = self._disable_flow_control()
                need_draw = True
                while self.running:
                    if need_draw:
                        self._draw()
                        need_draw = False

                    ready, _, _ = select.select([0, self._resize_pipe_r], [], [])
                    if self._resize_pipe_r in ready:
                        os.read(self._resize_pipe_r, 1024)
                        if self._ctrl_c_pressed:
                            self._ctrl_c_pressed = False
                            self.handle_key_event(KeyEvent(KeyType.CTRL, 'c', '\x03', is_ctrl=True))
                        else:
                            self.view.num_rows = self.terminal.height
                            self.view.num_cols = self.terminal.width
                            self.terminal.invalidate_frame()
                            self.view.render()
                        need_draw = True
                    elif 0 in ready:
                        key_event = self.keyboard.get_key_event(timeout=0)
                        if key_event:
                            self.handle_key_event(key_event)
                            need_draw = True

                if old_settings:
                    try:
                        termios.tcsetattr(sys.stdin, termios.TCSANOW, old_settings)
                    except (termios.error, OSError) as e:
                        logger.warning(f"Could not restore terminal settings: {e}")
        finally:
            signal.signal(signal.SIGWINCH, original_winch_handler)
            signal.signal(signal.SIGINT, original_int_handler)
            os.close(self._resize_pipe_r)
            os.close(self._resize_pipe_w)
            self.terminal.cleanup()

    @staticmethod
    def _disable_flow_control():
        """Let Ctrl-S, Ctrl-Q and Ctrl-V reach the editor as keys."""
        try:
            old_settings = termios.tcgetattr(sys.stdin)
            new_settings = list(old_settings)
            new_settings[0] &= ~(termios.IXON | termios.IXOFF)
            if hasattr(termios, 'IEXTEN'):
                new_settings[3] &= ~termios.IEXTEN
            termios.tcsetattr(sys.stdin, termios.TCSANOW, new_settings)
            return old_settings
        except (termios.error, OSError) as e:
            logger.warning(f"Could not adjust terminal settings: {e}")
            return None

    def _draw(self):
        """Draw the current editor state to terminal."""
        if self.terminal.width < EditorConstants.MIN_TERMINAL_WIDTH:
            self.error_mode = True
            self.terminal.draw_error_message(
                EditorConstants.TERMINAL_TOO_NARROW_MESSAGE.format(EditorConstants.MIN_TERMINAL_WIDTH),
                EditorConstants.CURRENT_WIDTH_MESSAGE.format(self.terminal.width),
            )
            return
        self.error_mode = False
        if self.help_visible:
            self._draw_help()
            return

        self.terminal.update_frame(
            self.view.visible_lines(),
            self.view.visual_cursor_y,
            self.view.visual_cursor_x,
            status=self.status_text(),
            selection_ranges=self.view.get_selection_ranges(),
        )
        if self.prompt_mode:
            self.terminal.draw_prompt(self.status_text())

    def status_text(self) -> str:
        if self.prompt_mode:
            return f" {PROMPTS[self.prompt_mode]}{self.prompt_input}"
        if self.status_message:
            return f" {self.status_message}"
        return self.view.status_line()

    def _draw_help(self):
        """Draw the help screen."""
        term = self.terminal.term
        print(term.home + term.clear, end='')
        title = "TABMARK HELP"
        print(term.move(1, max(0, (term.width - len(title)) // 2)) + term.bold + title + term.normal, end='')
        left_margin = max(0, (term.width - max(len(line) for line in HELP_LINES)) // 2)
        for i, line in enumerate(HELP_LINES):
            print(term.move(3 + i, left_margin) + line, end='')
        print(term.move(term.height - 1, 0) + " Press any key to continue", end='', flush=True)
        self.terminal.invalidate_frame()

    def handle_key_event(self, key_event: KeyEvent):
        """Handle a keyboard event."""
        if self.help_visible:
            self.hide_help()
            return

        # Clear status message on any keypress (except in prompt mode)
        if self.status_message and not self.prompt_mode:
            self.status_message = None

        if self.prompt_mode:
            self._handle_prompt(key_event)
            return

        if self.error_mode:
            if key_event.key_type == KeyType.CTRL and key_event.value == 'q':
                self.running = False
            return

        self.command_registry.execute(self, key_event)

    def _handle_prompt(self, key_event: KeyEvent):
        """Handle keypress while a prompt is open."""
        if (key_event.key_type == KeyType.SPECIAL and key_event.value == 'escape') or \
           (key_event.key_type == KeyType.CTRL and key_event.value == 'g'):
            self.prompt_mode = None
            self.prompt_input = ""
            self.status_message = "Cancelled"
        elif key_event.key_type == KeyType.SPECIAL and key_event.value == 'enter':
            mode, value = self.prompt_mode, self.prompt_input.strip()
            self.prompt_mode = None
            self.prompt_input = ""
            if value or mode == 'import':
                self._finish_prompt(mode, value)
        elif key_event.key_type == KeyType.SPECIAL and key_event.value == 'backspace':
            self.prompt_input = self.prompt_input[:-1]
        elif key_event.key_type == KeyType.REGULAR:
            char = key_event.value
            if len(char) == 1 and char.isprintable():
                self.prompt_input += char

    def _finish_prompt(self, mode: str, value: str):
        if mode == 'export':
            written = export_to_file(self.editor, value)
            self.status_message = f"Exported to {written}" if written else f"Error: Cannot save to {value}"
        elif mode == 'import':
            if value:
                self.import_file(value)
            else:
                self.import_clipboard()
        elif mode == 'clear_all':
            if value.lower() in ('y', 'yes'):
                self.editor.clear_all()
                self.status_message = "Document cleared"
            else:
                self.status_message = "Cancelled"
        elif mode == 'line_length':
            try:
                requested = int(value)
            except ValueError:
                self.status_message = f"Not a number: {value}"
                return
            length = self.editor.resize_line_length(requested)
            self.status_message = f"Line length {length}"
