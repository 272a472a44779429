import importlib
import threading
from concurrent.futures import ThreadPoolExecutor
from types import ModuleType
from typing import Any

import pytest

import wirebox.integrations.pydantic_settings as pydantic_settings_integration
from wirebox.container import Container
from wirebox.type_key import TypeKey

pydantic_settings = pytest.importorskip("pydantic_settings")


class DatabaseSettings(pydantic_settings.BaseSettings):
    model_config = pydantic_settings.SettingsConfigDict(env_prefix="WIREBOX_TEST_")

    dsn: str = "sqlite://"
    pool_size: int = 5


class Repository:
    def __init__(self, settings: DatabaseSettings) -> None:
        self.settings = settings


def test_settings_are_detected() -> None:
    assert pydantic_settings_integration.is_pydantic_settings_subclass(DatabaseSettings)
    assert not pydantic_settings_integration.is_pydantic_settings_subclass(
        pydantic_settings.BaseSettings,
    )
    assert not pydantic_settings_integration.is_pydantic_settings_subclass(Repository)
    assert not pydantic_settings_integration.is_pydantic_settings_subclass("DatabaseSettings")


def test_settings_are_autowired_as_singleton(container: Container) -> None:
    first = container.make(DatabaseSettings)

    assert first is container.make(DatabaseSettings)
    assert container.has(DatabaseSettings)


def test_settings_read_environment(container: Container, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WIREBOX_TEST_DSN", "postgresql://db/app")
    monkeypatch.setenv("WIREBOX_TEST_POOL_SIZE", "20")

    settings = container.make(DatabaseSettings)

    assert settings.dsn == "postgresql://db/app"
    assert settings.pool_size == 20


def test_settings_shared_by_dependents(container: Container) -> None:
    first = container.make(Repository)
    second = container.make(Repository)

    assert first is not second
    assert first.settings is second.settings


def test_explicit_parameters_build_unshared_settings(container: Container) -> None:
    custom = container.make(DatabaseSettings, {"dsn": "sqlite:///tmp/app.db"})
    shared = container.make(DatabaseSettings)

    assert custom.dsn == "sqlite:///tmp/app.db"
    assert shared.dsn == "sqlite://"
    assert custom is not shared
    assert container.make(DatabaseSettings) is shared


def test_explicit_parameters_apply_after_settings_are_shared(container: Container) -> None:
    shared = container.make(DatabaseSettings)
    custom = container.make(DatabaseSettings, {"dsn": "sqlite:///tmp/app.db"})

    assert custom.dsn == "sqlite:///tmp/app.db"
    assert custom is not shared
    assert container.make(DatabaseSettings) is shared


def test_explicit_parameters_ignored_for_registered_settings(container: Container) -> None:
    configured = DatabaseSettings(dsn="postgresql://db/app")
    container.instance(DatabaseSettings, configured)

    assert container.make(DatabaseSettings, {"dsn": "sqlite:///tmp/app.db"}) is configured


def test_settings_bound_to_themselves_keep_registration(container: Container) -> None:
    container.bind(DatabaseSettings, DatabaseSettings, singleton=True)
    definition = container._definitions[TypeKey.from_value(DatabaseSettings)]

    first = container.make(DatabaseSettings)

    assert first is container.make(DatabaseSettings)
    assert container._definitions[TypeKey.from_value(DatabaseSettings)] is definition


def test_concurrent_autowiring_shares_one_settings_instance() -> None:
    both_autowiring = threading.Barrier(2)

    class GatedContainer(Container):
        def autowire(self, key: Any, parameters: Any = None) -> Any:
            if TypeKey.from_value(key) == TypeKey.from_value(DatabaseSettings):
                both_autowiring.wait(timeout=5)
            return super().autowire(key, parameters)

    container = GatedContainer()

    with ThreadPoolExecutor(max_workers=2) as executor:
        results = list(executor.map(lambda _: container.make(DatabaseSettings), range(2)))

    assert results[0] is results[1]
    assert container.make(DatabaseSettings) is results[0]


def test_load_base_settings_returns_none_for_missing_module(monkeypatch: Any) -> None:
    def _raise_import_error(_module_name: str) -> ModuleType:
        raise ImportError

    monkeypatch.setattr(importlib, "import_module", _raise_import_error)

    assert pydantic_settings_integration._load_base_settings("missing.module") is None


def test_load_base_settings_returns_none_when_base_settings_is_not_a_type(
    monkeypatch: Any,
) -> None:
    module = ModuleType("test_module")
    module.BaseSettings = "not-a-type"  # type: ignore[attr-defined]

    monkeypatch.setattr(importlib, "import_module", lambda _module_name: module)

    assert pydantic_settings_integration._load_base_settings("fake.module") is None
