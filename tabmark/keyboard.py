"""Keyboard input handling using curtsies-style tokens."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class KeyType(Enum):
    """Types of key events."""
    REGULAR = "regular"
    ALT = "alt"
    CTRL = "ctrl"
    SPECIAL = "special"
    SHIFT_SPECIAL = "shift_special"  # Shift + arrow keys, etc.


@dataclass
class KeyEvent:
    """Represents a parsed keyboard event."""
    key_type: KeyType
    value: str  # The base key (e.g., 'a', 'left', 'backspace')
    raw: str
    is_alt: bool = False
    is_ctrl: bool = False
    is_shift: bool = False


SPECIAL_KEYS = {
    'left', 'right', 'up', 'down', 'home', 'end', 'enter', 'backspace',
    'delete', 'page_up', 'page_down', 'insert', 'tab', 'f1', 'escape',
}

_ALIASES = {
    'pageup': 'page_up',
    'pagedown': 'page_down',
    'esc': 'escape',
    'return': 'enter',
    'del': 'delete',
    'ins': 'insert',
}


class KeyboardHandler:
    """Turns terminal key tokens into KeyEvents."""

    def __init__(self, terminal_interface):
        self.terminal = terminal_interface

    def get_key_event(self, timeout: Optional[float] = None) -> Optional[KeyEvent]:
        key = self.terminal.get_key(timeout)
        if not key:
            return None
        return self.parse_key(key)

    def parse_key(self, key) -> KeyEvent:
        """Parse a key token such as 'a', '<LEFT>', '<Ctrl-z>' or '<Shift-RIGHT>'."""
        key_str = str(key)

        if key_str.startswith('<') and key_str.endswith('>') and len(key_str) > 2:
            return self._parse_token(key_str)

        # Single-byte ASCII control chars
        if len(key_str) == 1:
            o = ord(key_str)
            if key_str == '\t':
                return KeyEvent(KeyType.SPECIAL, 'tab', key_str)
            if o in (10, 13):
                return KeyEvent(KeyType.SPECIAL, 'enter', key_str)
            if o in (8, 127):
                return KeyEvent(KeyType.SPECIAL, 'backspace', key_str)
            if 1 <= o <= 26:
                return KeyEvent(KeyType.CTRL, chr(ord('a') + o - 1), key_str, is_ctrl=True)
            if o == 27:
                return KeyEvent(KeyType.SPECIAL, 'escape', key_str)

        return KeyEvent(KeyType.REGULAR, key_str, key_str)

    def _parse_token(self, key_str: str) -> KeyEvent:
        name = key_str[1:-1]
        # Support both '-' and '+' as modifier separators (e.g., '<Esc+u>')
        normalized = name.replace('+', '-')
        parts = normalized.split('-') if len(normalized) > 1 else [normalized]
        base = parts[-1]
        mods = {p.lower() for p in parts[:-1] if p}
        if 'meta' in mods or 'esc' in mods:
            mods.add('alt')

        lower = base.lower()
        lower = _ALIASES.get(lower, lower)

        if lower in ('space', 'spacebar', 'spc') and not mods:
            return KeyEvent(KeyType.REGULAR, ' ', ' ')
        if 'ctrl' in mods and len(base) == 1:
            if lower in ('j', 'm'):
                return KeyEvent(KeyType.SPECIAL, 'enter', key_str)
            if lower == 'i':
                return KeyEvent(KeyType.SPECIAL, 'tab', key_str)
            return KeyEvent(KeyType.CTRL, lower, key_str, is_ctrl=True)
        if 'alt' in mods and (lower in SPECIAL_KEYS or len(base) == 1):
            return KeyEvent(KeyType.ALT, lower if lower in SPECIAL_KEYS else base, key_str, is_alt=True)
        if 'shift' in mods and lower in SPECIAL_KEYS:
            return KeyEvent(KeyType.SHIFT_SPECIAL, lower, key_str, is_shift=True)
        if len(base) == 1 and not mods:
            # Printable characters curtsies wraps in brackets, e.g. '<|>'
            return KeyEvent(KeyType.REGULAR, base, base)
        return KeyEvent(KeyType.SPECIAL, lower, key_str)
