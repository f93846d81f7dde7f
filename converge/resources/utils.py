"""Shared helpers for file-system resources."""

import stat
from pathlib import Path


def parse_mode(mode: str) -> int:
    """Parse an octal permission string.

    Args:
        mode: Octal string such as "755" or "0700"

    Returns:
        Permission bits as an int

    Raises:
        ValueError: If the string is not a valid octal mode

    Example:
        >>> oct(parse_mode("755"))
        '0o755'
    """
    try:
        bits = int(mode, 8)
    except (TypeError, ValueError) as e:
        raise ValueError(f"invalid octal mode {mode!r}") from e
    if not 0 <= bits <= 0o7777:
        raise ValueError(f"invalid octal mode {mode!r}")
    return bits


def mode_matches(path: Path, mode: str | None) -> bool:
    """True when ``mode`` is None or equals the permission bits of ``path``."""
    if mode is None:
        return True
    return stat.S_IMODE(path.stat().st_mode) == parse_mode(mode)


def validate_mode(value: str | None) -> str | None:
    """Pydantic field hook: check an optional octal mode string."""
    if value is not None:
        parse_mode(value)
    return value
