"""macOS ``defaults`` preference store.

Reads go through ``defaults export <domain> -``, which prints the whole domain
as an XML property list. Parsing that with plistlib keeps the stored types
(``defaults read`` prints booleans as 1/0 and loses the distinction between
integers, floats and strings).
"""

import logging
import plistlib
from xml.sax.saxutils import escape

from converge.errors import GuardEvaluationError
from converge.values import TypedValue, ValueKind

from .base import PreferenceStore, ProcessRunner
from .process import SubprocessRunner

logger = logging.getLogger(__name__)

# Domains given as a path under these roots belong to the system and need root
_SYSTEM_ROOTS = ("/Library/", "/System/")


def write_arguments(value: TypedValue) -> list[str]:
    """Translate a typed value into ``defaults write`` value arguments.

    Example:
        >>> write_arguments(TypedValue.of(True))
        ['-bool', 'TRUE']
        >>> write_arguments(TypedValue.of(0.001))
        ['-float', '0.001']
    """
    if value.kind is ValueKind.BOOLEAN:
        return ["-bool", "TRUE" if value.value else "FALSE"]
    if value.kind is ValueKind.INTEGER:
        return ["-int", str(value.value)]
    if value.kind is ValueKind.FLOAT:
        return ["-float", repr(value.value)]
    if value.kind is ValueKind.STRING:
        return ["-string", value.value]
    # Lists are written as a plist fragment so element types survive
    return [plist_fragment(value)]


def plist_fragment(value: TypedValue) -> str:
    """Render a typed value as an XML property list fragment."""
    if value.kind is ValueKind.BOOLEAN:
        return "<true/>" if value.value else "<false/>"
    if value.kind is ValueKind.INTEGER:
        return f"<integer>{value.value}</integer>"
    if value.kind is ValueKind.FLOAT:
        return f"<real>{value.value!r}</real>"
    if value.kind is ValueKind.STRING:
        return f"<string>{escape(value.value)}</string>"
    items = "".join(plist_fragment(item) for item in value.value)
    return f"<array>{items}</array>"


class DefaultsPreferenceStore(PreferenceStore):
    """Preference store backed by the ``defaults`` command.

    Attributes:
        runner: Process runner used to invoke defaults
        executable: defaults executable name or path

    Example:
        >>> store = DefaultsPreferenceStore()
        >>> store.get("com.apple.dock", "autohide")
        TypedValue(kind=<ValueKind.BOOLEAN: 'boolean'>, value=True)
        >>> store.set("com.apple.dock", "autohide-delay", TypedValue.of(0))
    """

    def __init__(
        self, runner: ProcessRunner | None = None, executable: str = "defaults"
    ):
        self.runner = runner or SubprocessRunner()
        self.executable = executable

    def export(self, domain: str) -> dict:
        """Read a whole domain as a dictionary (empty if it does not exist)."""
        result = self.runner.run(
            [self.executable, "export", domain, "-"], interactive=False
        )
        if not result.ok:
            raise GuardEvaluationError(
                domain,
                f"could not read preferences: {result.stderr.strip() or result.returncode}",
            )
        if not result.stdout.strip():
            return {}
        try:
            data = plistlib.loads(result.stdout.encode("utf-8"))
        except Exception as e:
            raise GuardEvaluationError(
                domain, f"unparseable preferences export: {e}"
            ) from e
        return data if isinstance(data, dict) else {}

    def get(self, domain: str, key: str) -> TypedValue | None:
        data = self.export(domain)
        if key not in data:
            return None
        try:
            return TypedValue.of(data[key])
        except TypeError:
            # Dicts, dates and data never equal a declared value
            logger.debug(
                f"{domain} {key} holds an unsupported {type(data[key]).__name__}"
            )
            return None

    def set(self, domain: str, key: str, value: TypedValue) -> None:
        argv = [self.executable, "write", domain, key, *write_arguments(value)]
        if domain.startswith(_SYSTEM_ROOTS):
            argv = ["sudo", *argv]
        logger.info(f"Writing {domain} {key} = {value}")
        self.runner.run(argv).check(f"{domain} {key}")
