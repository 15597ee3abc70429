"""Typed statement parameters."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Tuple


class ValueType(Enum):
    """Native storage classes a parameter can bind as."""

    INTEGER = "integer"
    REAL = "real"
    TEXT = "text"


_NATIVE_TYPES: Dict[ValueType, type] = {
    ValueType.INTEGER: int,
    ValueType.REAL: float,
    ValueType.TEXT: str,
}


@dataclass(frozen=True)
class SQLValue:
    """Immutable parameter value tagged with the type it binds as.

    Build instances through the factory methods. Construction rejects a
    value whose Python type does not match ``type``, so binding never has
    to convert anything.
    """

    value: Any
    type: ValueType

    def __post_init__(self):
        native = _NATIVE_TYPES[self.type]
        if type(self.value) is not native:
            raise TypeError(
                f"{self.type.value} value must be {native.__name__}, "
                f"got {type(self.value).__name__}"
            )

    @classmethod
    def integer(cls, value: int) -> "SQLValue":
        return cls(value, ValueType.INTEGER)

    @classmethod
    def real(cls, value: float) -> "SQLValue":
        """Integers are widened to float; anything else must already be a float."""
        if type(value) is int:
            value = float(value)
        return cls(value, ValueType.REAL)

    @classmethod
    def text(cls, value: str) -> "SQLValue":
        return cls(value, ValueType.TEXT)

    @classmethod
    def boolean(cls, value: bool) -> "SQLValue":
        """Booleans are stored as INTEGER 0 or 1."""
        return cls(1 if value else 0, ValueType.INTEGER)

    def bind_value(self) -> Any:
        """Return the native value handed to the driver for this parameter."""
        return self.value

    def __repr__(self) -> str:
        return f"SQLValue.{self.type.value}({self.value!r})"


def bind_parameters(values: Iterable[SQLValue]) -> Tuple[Any, ...]:
    """Convert values to driver parameters; position i binds placeholder i."""
    return tuple(value.bind_value() for value in values)
