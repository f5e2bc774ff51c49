"""Read exact line ranges from source files.

Anything that returns source text should go through here so the text
matches the file bytes (line endings and whitespace preserved).
"""

from __future__ import annotations

from pathlib import Path


def _split_preserving_endings(path: Path) -> tuple[list[str], str]:
    raw = path.read_bytes()
    if b"\r\n" in raw:
        ending = "\r\n"
    elif b"\r" in raw:
        ending = "\r"
    else:
        ending = "\n"
    return raw.decode("utf-8").split(ending), ending


def count_lines(path: str | Path) -> int:
    lines, _ = _split_preserving_endings(Path(path))
    # A trailing newline leaves an empty final element
    return len(lines) - 1 if lines and lines[-1] == "" else len(lines)


def read_line_range(path: str | Path, start_line: int, end_line: int) -> str:
    """Return lines start_line..end_line (1-indexed, inclusive), joined with the file's own line ending.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the range is empty or starts past the end of the file.
    """
    if start_line < 1:
        msg = f"start_line must be >= 1, got {start_line}"
        raise ValueError(msg)
    if end_line < start_line:
        msg = f"end_line ({end_line}) must be >= start_line ({start_line})"
        raise ValueError(msg)

    file_path = Path(path)
    if not file_path.exists():
        msg = f"File not found: {path}"
        raise FileNotFoundError(msg)

    lines, ending = _split_preserving_endings(file_path)
    if start_line > len(lines):
        msg = f"start_line {start_line} exceeds file length ({len(lines)} lines)"
        raise ValueError(msg)
    return ending.join(lines[start_line - 1 : end_line])
