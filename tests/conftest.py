"""Shared pytest fixtures for wirebox tests."""

import pytest

from wirebox.container import Container
from wirebox.dependencies import ConstructorInspector
from wirebox.lock_mode import LockMode


@pytest.fixture()
def container() -> Container:
    """Default container with autowiring enabled."""
    return Container()


@pytest.fixture()
def strict_container() -> Container:
    """Container with autowiring disabled."""
    return Container(autowire=False)


@pytest.fixture()
def unlocked_container() -> Container:
    """Container without singleton locking."""
    return Container(lock_mode=LockMode.NONE)


@pytest.fixture()
def inspector() -> ConstructorInspector:
    """ConstructorInspector instance."""
    return ConstructorInspector()
