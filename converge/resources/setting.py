"""Key/value setting resource for per-application preferences."""

from collections.abc import Mapping
from typing import Any

from pydantic import field_validator, model_validator

from converge.values import TypedValue

from .base import Resource, ResourceKind


class KeyValueSettingResource(Resource):
    """Key/value setting resource - ensures a preference holds a typed value.

    The guard compares kind and value. A stored string "YES" does not satisfy
    a declared boolean True, and a stored integer 0 does not satisfy a
    declared float 0.0; either mismatch is rewritten once and then holds.

    Usage:
        KeyValueSettingResource(
            domain="com.apple.menuextra.battery", key="ShowPercent", value=True
        )

    Attributes:
        domain: Preference domain (bundle id, NSGlobalDomain or plist path)
        key: Preference key
        value: Declared value; plain Python values are classified on input
    """

    kind = ResourceKind.KEY_VALUE_SETTING

    domain: str
    key: str
    value: TypedValue

    @model_validator(mode="before")
    @classmethod
    def name_from_key(cls, data: Any) -> Any:
        if (
            isinstance(data, dict)
            and not data.get("name")
            and data.get("domain")
            and data.get("key")
        ):
            data = {**data, "name": f"{data['domain']} {data['key']}"}
        return data

    @field_validator("value", mode="before")
    @classmethod
    def classify_value(cls, value: Any) -> Any:
        if isinstance(value, TypedValue):
            return value
        if isinstance(value, dict) and "kind" in value:
            return value
        try:
            return TypedValue.of(value)
        except TypeError as e:
            raise ValueError(str(e)) from e

    def is_satisfied(self, ctx) -> bool:
        return ctx.preferences.get(self.domain, self.key) == self.value

    def apply(self, ctx) -> None:
        ctx.preferences.set(self.domain, self.key, self.value)

    def summary(self) -> str:
        return self.description or f"{self.domain} {self.key} = {self.value}"


def settings(
    domain: str, values: Mapping[str, Any], **kwargs
) -> list[KeyValueSettingResource]:
    """Expand a domain's preference mapping into one resource per key.

    Example:
        >>> dock = settings("com.apple.dock", {"autohide": True, "autohide-delay": 0})
        >>> [r.name for r in dock]
        ['com.apple.dock autohide', 'com.apple.dock autohide-delay']
    """
    return [
        KeyValueSettingResource(domain=domain, key=key, value=value, **kwargs)
        for key, value in values.items()
    ]
