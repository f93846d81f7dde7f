"""Tests for the concrete collaborators: subprocess, Homebrew, defaults and HTTP."""

import plistlib

import httpx
import pytest

from converge.collaborators import (
    CommandResult,
    DefaultsPreferenceStore,
    HomebrewPackageManager,
    HttpFileFetcher,
    SubprocessRunner,
    as_argv,
    non_interactive,
)
from converge.collaborators.defaults import plist_fragment, write_arguments
from converge.errors import ActionExecutionError, GuardEvaluationError
from converge.values import TypedValue

from .conftest import FakeRunner


class TestProcessHelpers:
    def test_as_argv(self):
        assert as_argv("echo hi") == ["/bin/sh", "-c", "echo hi"]
        assert as_argv(("brew", 1)) == ["brew", "1"]

    def test_non_interactive_adds_flag_once(self):
        assert non_interactive(["sudo", "true"]) == ["sudo", "-n", "true"]
        assert non_interactive(["sudo", "-n", "true"]) == ["sudo", "-n", "true"]
        assert non_interactive(["/usr/bin/sudo", "-k"]) == ["/usr/bin/sudo", "-n", "-k"]
        assert non_interactive(["brew", "list"]) == ["brew", "list"]

    def test_check_formats_last_line_of_stderr(self):
        result = CommandResult(argv=["brew", "install", "x"], returncode=1, stderr="a\nError: boom\n")
        with pytest.raises(ActionExecutionError) as excinfo:
            result.check("x")
        assert excinfo.value.reason == "`brew install x` exited with status 1: Error: boom"


class TestSubprocessRunner:
    def test_captures_output(self):
        result = SubprocessRunner().run(["/bin/sh", "-c", "echo out; echo err >&2; exit 3"])
        assert result.returncode == 3
        assert result.stdout == "out\n"
        assert result.stderr == "err\n"
        assert not result.ok

    def test_extra_env_and_cwd(self, temp_dir):
        result = SubprocessRunner().run(
            ["/bin/sh", "-c", 'echo "$GREETING"; pwd'], cwd=temp_dir, env={"GREETING": "hello"}
        )
        lines = result.stdout.splitlines()
        assert lines[0] == "hello"
        assert lines[1].endswith(temp_dir.name)

    def test_non_interactive_closes_stdin(self):
        result = SubprocessRunner().run(["/bin/sh", "-c", "cat"], interactive=False)
        assert result.ok and result.stdout == ""

    def test_missing_executable(self):
        with pytest.raises(ActionExecutionError, match="could not start"):
            SubprocessRunner().run(["/nonexistent/converge-test-binary"])


class TestHomebrewPackageManager:
    def test_installed_formula(self):
        runner = FakeRunner({
            ("brew", "list", "--versions", "zsh"): CommandResult(
                argv=[], returncode=0, stdout="zsh 5.9\n"
            )
        })
        assert HomebrewPackageManager(runner).is_installed("zsh") is True
        assert runner.calls[0]["interactive"] is False

    def test_cask_query_uses_cask_flag(self):
        runner = FakeRunner({
            ("brew", "list", "--cask", "--versions", "iterm2"): CommandResult(
                argv=[], returncode=1, stderr="Error: Cask 'iterm2' is not installed.\n"
            )
        })
        assert HomebrewPackageManager(runner).is_installed("iterm2", cask=True) is False

    def test_missing_formula_is_not_installed(self):
        runner = FakeRunner({
            ("brew", "list", "--versions", "zsh"): CommandResult(
                argv=[], returncode=1, stderr="Error: No such keg: /usr/local/Cellar/zsh\n"
            )
        })
        assert HomebrewPackageManager(runner).is_installed("zsh") is False

    def test_unexpected_brew_error_fails_guard(self):
        runner = FakeRunner({
            ("brew", "list", "--versions", "zsh"): CommandResult(
                argv=[], returncode=1, stderr="Error: Permission denied @ dir_s_mkdir\n"
            )
        })
        with pytest.raises(GuardEvaluationError, match="Permission denied"):
            HomebrewPackageManager(runner).is_installed("zsh")

    def test_install_passes_options(self):
        runner = FakeRunner()
        HomebrewPackageManager(runner, executable="/opt/homebrew/bin/brew").install(
            "emacs", options=["--cocoa", "--with-gnutls"]
        )
        assert runner.argvs == [
            ["/opt/homebrew/bin/brew", "install", "--cocoa", "--with-gnutls", "emacs"]
        ]

    def test_install_failure_raises(self):
        runner = FakeRunner({("brew", "install", "--cask", "caffeine"): 1})
        with pytest.raises(ActionExecutionError) as excinfo:
            HomebrewPackageManager(runner).install("caffeine", cask=True)
        assert excinfo.value.resource == "caffeine"


class TestDefaultsPreferenceStore:
    EXPORT = ("defaults", "export", "com.apple.dock", "-")

    def _store(self, exported):
        stdout = plistlib.dumps(exported).decode("utf-8")
        runner = FakeRunner({self.EXPORT: CommandResult(argv=list(self.EXPORT), returncode=0, stdout=stdout)})
        return DefaultsPreferenceStore(runner), runner

    def test_reads_keep_plist_types(self):
        store, _ = self._store({
            "autohide": True,
            "tilesize": 36,
            "autohide-delay": 0.0,
            "orientation": "left",
            "persistent-apps": ["Safari", 1],
        })
        assert store.get("com.apple.dock", "autohide") == TypedValue.of(True)
        assert store.get("com.apple.dock", "tilesize") == TypedValue.of(36)
        assert store.get("com.apple.dock", "autohide-delay") == TypedValue.of(0.0)
        assert store.get("com.apple.dock", "orientation") == TypedValue.of("left")
        assert store.get("com.apple.dock", "persistent-apps") == TypedValue.of(["Safari", 1])

    def test_missing_key_and_unsupported_types_read_as_none(self):
        store, _ = self._store({"nested": {"a": 1}})
        assert store.get("com.apple.dock", "absent") is None
        assert store.get("com.apple.dock", "nested") is None

    def test_empty_export_is_empty_domain(self):
        runner = FakeRunner({self.EXPORT: CommandResult(argv=[], returncode=0, stdout="")})
        assert DefaultsPreferenceStore(runner).get("com.apple.dock", "autohide") is None

    def test_failed_export_fails_guard(self):
        runner = FakeRunner({self.EXPORT: CommandResult(argv=[], returncode=1, stderr="boom")})
        with pytest.raises(GuardEvaluationError):
            DefaultsPreferenceStore(runner).get("com.apple.dock", "autohide")

    def test_write_arguments(self):
        assert write_arguments(TypedValue.of(True)) == ["-bool", "TRUE"]
        assert write_arguments(TypedValue.of(0)) == ["-int", "0"]
        assert write_arguments(TypedValue.of(0.001)) == ["-float", "0.001"]
        assert write_arguments(TypedValue.of("Nlsv")) == ["-string", "Nlsv"]
        assert write_arguments(TypedValue.of(["a", False])) == [
            "<array><string>a</string><false/></array>"
        ]

    def test_plist_fragment_escapes_strings(self):
        assert plist_fragment(TypedValue.of("a<b")) == "<string>a&lt;b</string>"

    def test_set_user_domain(self):
        runner = FakeRunner()
        DefaultsPreferenceStore(runner).set("com.apple.dock", "autohide", TypedValue.of(True))
        assert runner.argvs == [["defaults", "write", "com.apple.dock", "autohide", "-bool", "TRUE"]]

    def test_set_system_domain_uses_sudo(self):
        runner = FakeRunner()
        DefaultsPreferenceStore(runner).set(
            "/Library/Preferences/com.apple.loginwindow", "SHOWFULLNAME", TypedValue.of(True)
        )
        assert runner.argvs[0][:2] == ["sudo", "defaults"]

    def test_set_failure_raises(self):
        argv = ("defaults", "write", "com.apple.dock", "autohide", "-bool", "TRUE")
        runner = FakeRunner({argv: 1})
        with pytest.raises(ActionExecutionError):
            DefaultsPreferenceStore(runner).set("com.apple.dock", "autohide", TypedValue.of(True))


class TestHttpFileFetcher:
    URL = "https://example.com/fonts.zip"
    BODY = b"PK\x03\x04 font archive"

    def _fetcher(self, handler, max_retries=2):
        client = httpx.Client(transport=httpx.MockTransport(handler))
        return HttpFileFetcher(max_retries=max_retries, client=client)

    def test_downloads_and_verifies(self, temp_dir, sha256):
        dest = temp_dir / "fonts.zip"
        fetcher = self._fetcher(lambda request: httpx.Response(200, content=self.BODY))

        fetcher.fetch(self.URL, dest, checksum=sha256(self.BODY))

        assert dest.read_bytes() == self.BODY
        assert [p.name for p in temp_dir.iterdir()] == ["fonts.zip"]

    def test_retries_transient_failures(self, temp_dir):
        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ConnectError("connection reset", request=request)
            if len(attempts) == 2:
                return httpx.Response(503)
            return httpx.Response(200, content=self.BODY)

        dest = temp_dir / "fonts.zip"
        self._fetcher(handler).fetch(self.URL, dest)

        assert len(attempts) == 3
        assert dest.read_bytes() == self.BODY

    def test_gives_up_after_max_retries(self, temp_dir):
        attempts = []

        def handler(request):
            attempts.append(request)
            return httpx.Response(502)

        with pytest.raises(ActionExecutionError, match="after 3 attempt"):
            self._fetcher(handler).fetch(self.URL, temp_dir / "fonts.zip")
        assert len(attempts) == 3
        assert list(temp_dir.iterdir()) == []

    def test_client_error_is_not_retried(self, temp_dir):
        attempts = []

        def handler(request):
            attempts.append(request)
            return httpx.Response(404)

        with pytest.raises(ActionExecutionError, match="HTTP 404"):
            self._fetcher(handler).fetch(self.URL, temp_dir / "fonts.zip")
        assert len(attempts) == 1

    def test_checksum_mismatch_keeps_existing_file(self, temp_dir, sha256):
        dest = temp_dir / "fonts.zip"
        dest.write_bytes(b"previous")
        fetcher = self._fetcher(lambda request: httpx.Response(200, content=b"tampered"))

        with pytest.raises(ActionExecutionError, match="checksum mismatch"):
            fetcher.fetch(self.URL, dest, checksum=sha256(self.BODY))

        assert dest.read_bytes() == b"previous"
        assert [p.name for p in temp_dir.iterdir()] == ["fonts.zip"]

    def test_missing_destination_directory(self, temp_dir):
        fetcher = self._fetcher(lambda request: httpx.Response(200, content=self.BODY))
        with pytest.raises(ActionExecutionError, match="does not exist"):
            fetcher.fetch(self.URL, temp_dir / "missing" / "fonts.zip")


class TestClosing:
    def test_fetcher_close_releases_client(self):
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        fetcher = HttpFileFetcher(client=client)

        fetcher.close()

        assert client.is_closed
        fetcher.close()

    def test_collaborators_close_fetcher(self, ctx, fetcher):
        ctx.close()
        assert fetcher.closed is True
