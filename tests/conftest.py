"""
Pytest configuration and fixtures for Converge tests.

The fakes below stand in for Homebrew, the network, the defaults store and
subprocesses, so tests exercise guards and actions without touching the host.
"""

import hashlib
import tempfile
from pathlib import Path

import pytest

from converge.collaborators import (
    Collaborators,
    CommandResult,
    FileFetcher,
    PackageManager,
    PreferenceStore,
    ProcessRunner,
)
from converge.errors import ActionExecutionError
from converge.values import TypedValue


class FakeRunner(ProcessRunner):
    """Records commands; answers from ``responses`` or with exit status 0.

    ``responses`` maps an argv tuple to a CommandResult, an int exit status,
    or a callable receiving the argv.
    """

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    def run(self, argv, cwd=None, env=None, interactive=True):
        argv = [str(arg) for arg in argv]
        self.calls.append({"argv": argv, "cwd": cwd, "env": env, "interactive": interactive})
        response = self.responses.get(tuple(argv), 0)
        if callable(response):
            response = response(argv)
        if isinstance(response, CommandResult):
            return response
        return CommandResult(argv=argv, returncode=response)

    @property
    def argvs(self):
        return [call["argv"] for call in self.calls]


class FakePackageManager(PackageManager):
    def __init__(self, installed=(), broken=()):
        self.installed = set(installed)
        self.broken = set(broken)
        self.installs = []
        self.queries = []

    def is_installed(self, name, cask=False):
        self.queries.append(name)
        return name in self.installed

    def install(self, name, options=(), cask=False):
        self.installs.append((name, tuple(options), cask))
        if name in self.broken:
            raise ActionExecutionError(name, f"`brew install {name}` exited with status 1")
        self.installed.add(name)


class FakePreferenceStore(PreferenceStore):
    def __init__(self, values=None):
        self.values = {
            key: TypedValue.of(value) for key, value in (values or {}).items()
        }
        self.writes = []

    def get(self, domain, key):
        return self.values.get((domain, key))

    def set(self, domain, key, value):
        self.writes.append((domain, key, value))
        self.values[(domain, key)] = value


class FakeFetcher(FileFetcher):
    """Serves bytes from ``files``; verifies checksums like the real fetcher."""

    def __init__(self, files=None):
        self.files = dict(files or {})
        self.fetches = []
        self.closed = False

    def fetch(self, url, dest, checksum=None):
        self.fetches.append(url)
        if url not in self.files:
            raise ActionExecutionError(url, "HTTP 404")
        body = self.files[url]
        actual = hashlib.sha256(body).hexdigest()
        if checksum is not None and actual != checksum:
            raise ActionExecutionError(
                url, f"checksum mismatch: expected {checksum}, got {actual}"
            )
        Path(dest).write_bytes(body)

    def close(self):
        self.closed = True


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def package_manager():
    return FakePackageManager()


@pytest.fixture
def preferences():
    return FakePreferenceStore()


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def ctx(runner, package_manager, fetcher, preferences):
    """Collaborators wired to in-memory fakes."""
    return Collaborators(
        runner=runner,
        packages=package_manager,
        fetcher=fetcher,
        preferences=preferences,
    )


@pytest.fixture
def sha256():
    return lambda body: hashlib.sha256(body).hexdigest()
