"""Tabmark CLI entry point.

Allows running via `python -m tabmark` and provides the console script
defined in `pyproject.toml`.

Usage:
    tabmark [--log FILE] [--state FILE] [file-to-import]
    tabmark --version
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from .version import get_version_string

USAGE = "usage: tabmark [--version] [--log FILE] [--state FILE] [file]"


def configure_logging(log_file: Optional[str]) -> None:
    """Send log records to a file; the full-screen UI owns the terminal."""
    if log_file is None:
        logging.getLogger().addHandler(logging.NullHandler())
        return
    logging.basicConfig(
        filename=log_file,
        level=logging.DEBUG,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def parse_args(args: list[str]) -> Optional[dict]:
    """Parse the command line.

    Returns:
        Dict with 'version', 'log', 'state' and 'file' keys, or None on a usage error.
    """
    options = {'version': False, 'log': None, 'state': None, 'file': None}
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in ('--version', '-V'):
            options['version'] = True
        elif arg in ('--log', '--state'):
            if i + 1 >= len(args):
                return None
            options[arg[2:]] = args[i + 1]
            i += 1
        elif arg.startswith('-'):
            return None
        elif options['file'] is None:
            options['file'] = arg
        else:
            return None
        i += 1
    return options


def main() -> None:
    options = parse_args(sys.argv[1:])
    if options is None:
        print(USAGE, file=sys.stderr)
        sys.exit(2)
    if options['version']:
        print(get_version_string())
        return

    configure_logging(options['log'])

    # Lazy import to avoid importing UI deps for --version
    from .app import TabApp
    from .storage import DocumentStore

    state = options['state']
    app = TabApp(store=DocumentStore(Path(state) if state else None))
    app.load_state()
    if options['file']:
        app.import_file(options['file'])
    app.run()


if __name__ == "__main__":  # pragma: no cover
    main()
