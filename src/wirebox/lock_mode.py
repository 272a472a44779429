from __future__ import annotations

from enum import Enum


class LockMode(Enum):
    """Select locking behavior for singleton resolution.

    ``THREAD`` is the default and guarantees that a singleton factory runs at
    most once even when several threads resolve the same key at the same
    time. Use ``NONE`` only for programs that resolve from a single thread.
    """

    THREAD = "thread"
    """Guard each singleton key with its own ``threading.Lock``."""

    NONE = "none"
    """Disable locking around singleton cache reads and writes."""
