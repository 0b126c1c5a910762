"""Constants and configuration for the tabmark editor."""

class EditorConstants:
    """Central configuration constants for the editor."""

    # Grid layout
    TRACK_COUNT = 6  # Six strings, high to low
    TRACK_NAMES = ("e", "B", "G", "D", "A", "E")
    TRACK_LABELS = ("e|", "B|", "G|", "D|", "A|", "E|")  # Prefix of each exported grid line
    BLANK = "-"
    BAR = "|"

    # Line length (columns per grid)
    DEFAULT_LINE_LENGTH = 80
    MIN_LINE_LENGTH = 50
    MAX_LINE_LENGTH = 120

    # Undo
    MAX_UNDO_STEPS = 50
    TEXT_UNDO_PAUSE = 1.0  # Seconds of idle typing before text edits start a new undo step

    # Persistence
    STORAGE_KEY = "ascii_tab_editor_v1"
    APP_NAME = "tabmark"
    APP_AUTHOR = "tabmark"

    # Export
    DEFAULT_EXPORT_NAME = "guitar-tab"
    MAX_FILENAME_LENGTH = 200

    # Fret numbers larger than this are read digit by digit
    MAX_FRET = 36

    # Terminal requirements
    LABEL_WIDTH = 2  # Width of the "e|" track label column
    MIN_TERMINAL_WIDTH = MIN_LINE_LENGTH + LABEL_WIDTH

    # Status messages
    TERMINAL_TOO_NARROW_MESSAGE = "Terminal too narrow! Need at least {} columns."
    CURRENT_WIDTH_MESSAGE = "Current width: {} columns."
