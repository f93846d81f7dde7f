"""Probes for user account and installer state."""

import os
import pwd

from .base import Probe


class LoginShellProbe(Probe):
    """Holds when the current user's login shell is ``shell``.

    Example:
        >>> LoginShellProbe(shell="/usr/local/bin/zsh")
    """

    shell: str

    def check(self, ctx) -> bool:
        return pwd.getpwuid(os.getuid()).pw_shell == self.shell

    def describe(self) -> str:
        return self.description or f"login shell is {self.shell}"


class PackageReceiptProbe(Probe):
    """Holds when macOS has an installer receipt for ``package_id``.

    Covers ``.pkg`` installs that live outside Homebrew.

    Example:
        >>> PackageReceiptProbe(package_id="com.macosinternals.tasksexplorer.Contents.pkg")
    """

    package_id: str

    def check(self, ctx) -> bool:
        result = ctx.runner.run(
            ["pkgutil", "--pkg-info", self.package_id], interactive=False
        )
        return result.ok

    def describe(self) -> str:
        return self.description or f"package receipt {self.package_id} present"
