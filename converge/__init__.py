"""
Converge - Declarative, idempotent machine setup in Python.

Declare the state a machine should be in (packages, casks, downloaded
assets, directories, preferences, one-off commands) and Converge checks each
declaration against the live system, acting only where it differs.

Pure Python declarations, checked fresh on every run, applied in order.
"""

from .engine import ConvergenceEngine, validate_resources
from .report import Outcome, ResourceResult, RunReport
from .settings import ConvergeSettings, get_settings, reload_settings
from .values import TypedValue, ValueKind

__version__ = "0.1.0"
__all__ = [
    "ConvergeSettings",
    "ConvergenceEngine",
    "Outcome",
    "ResourceResult",
    "RunReport",
    "TypedValue",
    "ValueKind",
    "get_settings",
    "reload_settings",
    "validate_resources",
]
