from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

from wirebox.exceptions import WireboxCyclicDependencyError
from wirebox.type_key import TypeKey

# Immutable tuple per context, so threads and asyncio tasks never share a path
_resolution_path: ContextVar[tuple[TypeKey, ...]] = ContextVar(
    "wirebox_resolution_path",
    default=(),
)


def get_resolution_path() -> tuple[TypeKey, ...]:
    """Return the keys currently being resolved in this context, outermost first."""
    return _resolution_path.get()


@contextmanager
def resolving(key: TypeKey) -> Iterator[None]:
    """Push ``key`` onto the resolution path for the duration of the block.

    Raises:
        WireboxCyclicDependencyError: If ``key`` is already on the path.

    """
    path = _resolution_path.get()
    if key in path:
        raise WireboxCyclicDependencyError(key, list(path))
    token = _resolution_path.set((*path, key))
    try:
        yield
    finally:
        _resolution_path.reset(token)
