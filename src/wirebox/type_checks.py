from __future__ import annotations

import inspect
import types
from typing import Any, TypeGuard


def is_runtime_class(candidate: object) -> TypeGuard[type[Any]]:
    """Return true when candidate is a runtime class safe for class-only operations.

    Args:
        candidate: Value being checked, usually a key or a parameter annotation.

    """
    return isinstance(candidate, type) and not isinstance(candidate, types.GenericAlias)


def is_abstract_class(candidate: type[Any]) -> bool:
    """Return true for abstract classes and protocols, which cannot be instantiated."""
    return inspect.isabstract(candidate) or bool(getattr(candidate, "_is_protocol", False))


__all__ = ["is_abstract_class", "is_runtime_class"]
