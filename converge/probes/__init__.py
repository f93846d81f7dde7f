"""Converge probes - side-effect-free guard predicates.

Probe Categories:
    - File: existence, line/pattern/checksum content
    - Command: exit status, first line of output
    - System: login shell, installer receipts

Example:
    >>> from converge.probes import FileContainsProbe, LoginShellProbe
    >>> from converge.resources import CommandResource
    >>>
    >>> CommandResource(
    ...     name="set zsh as default shell",
    ...     command=["chsh", "-s", "/usr/local/bin/zsh"],
    ...     not_if=LoginShellProbe(shell="/usr/local/bin/zsh"),
    ... )
"""

from .base import Probe
from .command import CommandOutputProbe, CommandSucceedsProbe
from .file import FileContainsProbe, FileExistsProbe
from .system import LoginShellProbe, PackageReceiptProbe

__all__ = [
    "CommandOutputProbe",
    "CommandSucceedsProbe",
    "FileContainsProbe",
    "FileExistsProbe",
    "LoginShellProbe",
    "PackageReceiptProbe",
    "Probe",
]
