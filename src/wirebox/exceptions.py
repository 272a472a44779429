from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wirebox.type_key import TypeKey


class WireboxError(Exception):
    """Represent a base class for all wirebox-specific failures.

    Catch this type when you want to handle any resolution failure without
    matching each concrete exception class individually.
    """


class WireboxUnknownTypeError(WireboxError):
    """Signal that a key has no definition and cannot be autowired.

    Raised by ``Container.make`` when the key is not registered and is not an
    autowirable class: string markers, builtin types such as ``int``, classes
    listed in ``autowire_ignores``, or any class when autowiring is disabled.

    Typical fix is registering the key explicitly with ``register``,
    ``singleton``, ``instance`` or ``bind``.
    """

    def __init__(self, key: TypeKey, reason: str | None = None) -> None:
        self.key = key
        self.reason = reason
        message = f"Type '{key}' is not registered and cannot be autowired"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class WireboxUnresolvableDependencyError(WireboxError):
    """Signal that a constructor parameter cannot be resolved.

    Raised while autowiring when a parameter has no explicit value, no default
    and a declared type that is missing, scalar, abstract or otherwise not
    resolvable. Also raised when the requested class itself is abstract or its
    type hints cannot be evaluated.

    Typical fixes include passing the value through ``make(key, {"name": value})``,
    registering the parameter's type, or annotating the parameter.
    """

    def __init__(self, key: TypeKey, reason: str, parameter: str | None = None) -> None:
        self.key = key
        self.parameter = parameter
        self.reason = reason
        if parameter is None:
            message = f"Cannot autowire '{key}': {reason}"
        else:
            message = f"Cannot resolve parameter '{parameter}' of '{key}': {reason}"
        super().__init__(message)


class WireboxCyclicDependencyError(WireboxError):
    """Signal that resolution revisited a key already being resolved.

    ``path`` holds the keys on the active resolution path, outermost first,
    at the moment ``key`` was requested again.
    """

    def __init__(self, key: TypeKey, path: list[TypeKey]) -> None:
        self.key = key
        self.path = path
        chain = " -> ".join(str(item) for item in [*path, key])
        super().__init__(f"Circular dependency detected: {chain}")


class WireboxConstructionError(WireboxError):
    """Signal that a factory or constructor raised while building an instance.

    The original exception is available as ``cause`` and is chained as
    ``__cause__``.
    """

    def __init__(self, key: TypeKey, cause: BaseException) -> None:
        self.key = key
        self.cause = cause
        super().__init__(f"Failed to construct '{key}': {type(cause).__name__}: {cause}")
