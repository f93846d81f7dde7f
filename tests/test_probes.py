"""Tests for guard probes."""

import hashlib
import os
import pwd

import pytest
from pydantic import ValidationError

from converge.collaborators import CommandResult
from converge.probes import (
    CommandOutputProbe,
    CommandSucceedsProbe,
    FileContainsProbe,
    FileExistsProbe,
    LoginShellProbe,
    PackageReceiptProbe,
)


class TestFileProbes:
    def test_file_exists(self, ctx, temp_dir):
        probe = FileExistsProbe(path=temp_dir / "zshenv")
        assert probe.check(ctx) is False
        (temp_dir / "zshenv").touch()
        assert probe.check(ctx) is True

    def test_contains_exact_line(self, ctx, temp_dir):
        shells = temp_dir / "shells"
        shells.write_text("/bin/bash\n/usr/local/bin/zsh-old\n")
        probe = FileContainsProbe(path=shells, line="/usr/local/bin/zsh")
        assert probe.check(ctx) is False

        shells.write_text("/bin/bash\n/usr/local/bin/zsh\n")
        assert probe.check(ctx) is True

    def test_contains_pattern(self, ctx, temp_dir):
        hosts = temp_dir / "hosts"
        hosts.write_text("127.0.0.1   localhost\n")
        assert FileContainsProbe(path=hosts, pattern=r"127\.0\.0\.1\s+localhost").check(ctx)
        assert not FileContainsProbe(path=hosts, pattern=r"^::1").check(ctx)

    def test_contains_checksum(self, ctx, temp_dir):
        target = temp_dir / "widget"
        target.write_bytes(b"widget")
        digest = hashlib.sha256(b"widget").hexdigest()
        assert FileContainsProbe(path=target, sha256=digest.upper()).check(ctx)

    def test_missing_file_never_matches(self, ctx, temp_dir):
        assert FileContainsProbe(path=temp_dir / "absent", line="x").check(ctx) is False

    @pytest.mark.parametrize(
        "matchers",
        [{}, {"line": "a", "pattern": "a"}, {"line": "a", "sha256": "0" * 64}],
    )
    def test_requires_exactly_one_matcher(self, temp_dir, matchers):
        with pytest.raises(ValidationError):
            FileContainsProbe(path=temp_dir / "f", **matchers)


class TestCommandProbes:
    def test_succeeds_uses_exit_status(self, ctx, runner):
        runner.responses[("pgrep", "Dock")] = 1
        assert CommandSucceedsProbe(command=["pgrep", "Dock"]).check(ctx) is False
        runner.responses[("pgrep", "Dock")] = 0
        assert CommandSucceedsProbe(command=["pgrep", "Dock"]).check(ctx) is True

    def test_never_prompts(self, ctx, runner):
        CommandSucceedsProbe(command=["sudo", "test", "-f", "/etc/zshenv"]).check(ctx)
        call = runner.calls[-1]
        assert call["argv"] == ["sudo", "-n", "test", "-f", "/etc/zshenv"]
        assert call["interactive"] is False

    def test_string_command_uses_shell(self, ctx, runner):
        CommandSucceedsProbe(command="brew tap | grep -q emacs").check(ctx)
        assert runner.argvs[-1] == ["/bin/sh", "-c", "brew tap | grep -q emacs"]

    def test_output_compares_first_line(self, ctx, runner):
        runner.responses[("duti", "-x", "pdf")] = CommandResult(
            argv=["duti", "-x", "pdf"], returncode=0,
            stdout="Skim.app\n/Applications/Skim.app\nnet.sourceforge.skim-app.skim\n",
        )
        assert CommandOutputProbe(command=["duti", "-x", "pdf"], expected="Skim.app").check(ctx)
        assert not CommandOutputProbe(command=["duti", "-x", "pdf"], expected="Preview.app").check(ctx)

    def test_output_of_failed_command_never_matches(self, ctx, runner):
        runner.responses[("duti", "-x", "pdf")] = CommandResult(
            argv=["duti", "-x", "pdf"], returncode=1, stdout="Skim.app\n"
        )
        assert CommandOutputProbe(command=["duti", "-x", "pdf"], expected="Skim.app").check(ctx) is False


class TestSystemProbes:
    def test_login_shell(self, ctx):
        current = pwd.getpwuid(os.getuid()).pw_shell
        assert LoginShellProbe(shell=current).check(ctx) is True
        assert LoginShellProbe(shell="/nonexistent/shell").check(ctx) is False

    def test_package_receipt(self, ctx, runner):
        package_id = "com.macosinternals.tasksexplorer.Contents.pkg"
        runner.responses[("pkgutil", "--pkg-info", package_id)] = 1
        assert PackageReceiptProbe(package_id=package_id).check(ctx) is False
        assert runner.calls[-1]["interactive"] is False


def test_probes_are_frozen(temp_dir):
    probe = FileExistsProbe(path=temp_dir)
    with pytest.raises(ValidationError):
        probe.path = temp_dir / "other"


def test_describe_defaults():
    assert LoginShellProbe(shell="/bin/zsh").describe() == "login shell is /bin/zsh"
    assert LoginShellProbe(shell="/bin/zsh", description="zsh").describe() == "zsh"
