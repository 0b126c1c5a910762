"""Write tabmark/_build_info.py by hand (same content as the build hook)."""

from __future__ import annotations

import subprocess
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _run_git(args: list[str]) -> str | None:
    try:
        out = subprocess.check_output(["git", *args], cwd=str(PROJECT_ROOT), stderr=subprocess.DEVNULL)
    except (subprocess.CalledProcessError, OSError):
        return None
    return out.decode().strip() or None


def main() -> None:
    commit = _run_git(["rev-parse", "HEAD"])
    date = _run_git(["show", "-s", "--format=%cI", "HEAD"])
    target = PROJECT_ROOT / "tabmark" / "_build_info.py"
    target.write_text(
        "# Auto-generated at build time.\n"
        f"COMMIT = {commit!r}\n"
        f"DATE = {date!r}\n",
        encoding="utf-8",
    )
    print(f"Wrote {target}")


if __name__ == "__main__":
    main()
