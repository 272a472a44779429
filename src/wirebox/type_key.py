from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class TypeKey:
    """Stable identifier of a registration or resolution target.

    The wrapped value is usually a class, but any hashable value works: a
    string capability marker, a ``typing`` alias and so on. Two keys are equal
    when their values are equal.
    """

    value: Hashable

    @classmethod
    def from_value(cls, value: Any) -> TypeKey:
        if isinstance(value, TypeKey):
            return value
        return cls(value=value)

    @property
    def name(self) -> str:
        """Human-readable name used in logs and error messages."""
        value = self.value
        if isinstance(value, type):
            if value.__module__ == "builtins":
                return value.__qualname__
            return f"{value.__module__}.{value.__qualname__}"
        if isinstance(value, str):
            return value
        return repr(value)

    def __str__(self) -> str:
        return self.name
