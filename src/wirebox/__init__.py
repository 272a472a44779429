from wirebox.container import Container, Factory
from wirebox.exceptions import (
    WireboxConstructionError,
    WireboxCyclicDependencyError,
    WireboxError,
    WireboxUnknownTypeError,
    WireboxUnresolvableDependencyError,
)
from wirebox.lock_mode import LockMode
from wirebox.type_key import TypeKey

__all__ = [
    "Container",
    "Factory",
    "LockMode",
    "TypeKey",
    "WireboxConstructionError",
    "WireboxCyclicDependencyError",
    "WireboxError",
    "WireboxUnknownTypeError",
    "WireboxUnresolvableDependencyError",
]
