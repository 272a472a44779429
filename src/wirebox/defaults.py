from typing import Any

DEFAULT_AUTOWIRE_IGNORES: frozenset[type[Any]] = frozenset(
    {
        int,
        str,
        float,
        bool,
        bytes,
        complex,
        list,
        dict,
        set,
        frozenset,
        tuple,
        object,
    },
)
