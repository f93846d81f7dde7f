"""
Converge Resources - Pydantic models for declared units of machine state.
"""

from .base import Resource, ResourceKind
from .command import CommandResource
from .directory import DirectoryResource
from .download import FileDownloadResource
from .package import PackageResource, casks, packages
from .setting import KeyValueSettingResource, settings

__all__ = [
    "CommandResource",
    "DirectoryResource",
    "FileDownloadResource",
    "KeyValueSettingResource",
    "PackageResource",
    "Resource",
    "ResourceKind",
    "casks",
    "packages",
    "settings",
]
