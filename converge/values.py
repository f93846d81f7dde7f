"""Tagged preference values with type-aware equality.

OS preference stores conflate types at the command-line layer ("YES", "1" and
true all read back alike). A TypedValue keeps the kind next to the value so a
guard can tell a boolean true from the string "YES", and an integer 0 from a
float 0.0.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class ValueKind(str, Enum):
    """Closed set of value kinds a preference can hold."""
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    LIST = "list"


_SCALAR_TYPES = {
    ValueKind.BOOLEAN: bool,
    ValueKind.INTEGER: int,
    ValueKind.FLOAT: float,
    ValueKind.STRING: str,
}


class TypedValue(BaseModel):
    """A preference value carried together with its kind.

    Equality compares kind first, then value; no coercion happens. List
    elements are TypedValues themselves and compare with the same rule.

    Attributes:
        kind: The value kind
        value: The Python value (a tuple of TypedValue for lists)

    Example:
        >>> TypedValue.of(True) == TypedValue.of("YES")
        False
        >>> TypedValue.of(0) == TypedValue.of(0.0)
        False
        >>> TypedValue.of(["a", 1]).to_python()
        ['a', 1]
    """

    model_config = ConfigDict(frozen=True)

    kind: ValueKind
    value: Any

    @model_validator(mode="after")
    def check_value_matches_kind(self):
        if self.kind is ValueKind.LIST:
            if not isinstance(self.value, tuple) or not all(
                isinstance(item, TypedValue) for item in self.value
            ):
                raise ValueError("list values must be a tuple of TypedValue")
            return self

        expected = _SCALAR_TYPES[self.kind]
        # bool is a subclass of int; keep the two apart
        if type(self.value) is not expected:
            raise ValueError(
                f"{self.kind.value} value must be {expected.__name__}, "
                f"got {type(self.value).__name__}"
            )
        return self

    @classmethod
    def of(cls, value: Any) -> "TypedValue":
        """Classify a plain Python value.

        Args:
            value: bool, int, float, str, list/tuple of those, or a TypedValue

        Returns:
            TypedValue wrapping the value

        Raises:
            TypeError: If the value is outside the supported kinds
        """
        if isinstance(value, TypedValue):
            return value
        if isinstance(value, bool):
            return cls(kind=ValueKind.BOOLEAN, value=value)
        if isinstance(value, int):
            return cls(kind=ValueKind.INTEGER, value=value)
        if isinstance(value, float):
            return cls(kind=ValueKind.FLOAT, value=value)
        if isinstance(value, str):
            return cls(kind=ValueKind.STRING, value=value)
        if isinstance(value, (list, tuple)):
            return cls(
                kind=ValueKind.LIST, value=tuple(cls.of(item) for item in value)
            )
        raise TypeError(
            f"Unsupported preference value type: {type(value).__name__}"
        )

    def to_python(self) -> Any:
        """Unwrap into a plain Python value (lists become lists)."""
        if self.kind is ValueKind.LIST:
            return [item.to_python() for item in self.value]
        return self.value

    def __str__(self) -> str:
        return f"{self.to_python()!r} ({self.kind.value})"
