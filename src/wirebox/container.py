from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from contextlib import AbstractContextManager, nullcontext
from typing import TYPE_CHECKING, Any, TypeVar, overload

if TYPE_CHECKING:
    from typing_extensions import Self

from wirebox.defaults import DEFAULT_AUTOWIRE_IGNORES
from wirebox.dependencies import ConstructorInspector, ParameterInfo
from wirebox.exceptions import (
    WireboxConstructionError,
    WireboxError,
    WireboxUnknownTypeError,
    WireboxUnresolvableDependencyError,
)
from wirebox.integrations.pydantic_settings import is_pydantic_settings_subclass
from wirebox.lock_mode import LockMode
from wirebox.resolution_stack import resolving
from wirebox.type_checks import is_abstract_class, is_runtime_class
from wirebox.type_key import TypeKey

T = TypeVar("T")

Factory = Callable[["Container"], Any]
"""Deferred constructor: receives the owning container and returns an instance."""

logger = logging.getLogger(__name__)

_MISSING = object()


class Container:
    """Dependency injection container for registering and resolving instances.

    Keys are usually classes, but any hashable value (for example a string
    capability marker) can be registered. Keys without a registration are
    autowired: the class's constructor is inspected and every parameter is
    resolved recursively from its type annotation.

    Registrations are either transient (``register``), producing a new
    instance on every ``make``, or shared (``singleton``, ``instance``),
    producing one instance per key for the lifetime of the container.

    Args:
        autowire: Resolve unregistered classes by inspecting their
            constructors. When ``False`` every key must be registered.
        autowire_ignores: Classes that are never autowired. Defaults to
            builtin scalars and collections.
        lock_mode: Locking used around singleton construction.

    """

    __slots__ = (
        "_autowire",
        "_autowire_ignores",
        "_autowired_settings",
        "_definitions",
        "_inspector",
        "_instances",
        "_lock_mode",
        "_singleton_locks",
        "_singleton_locks_lock",
    )

    def __init__(
        self,
        *,
        autowire: bool = True,
        autowire_ignores: set[type[Any]] | None = None,
        lock_mode: LockMode = LockMode.THREAD,
    ) -> None:
        self._autowire = autowire
        self._autowire_ignores: set[type[Any]] = set(
            DEFAULT_AUTOWIRE_IGNORES if autowire_ignores is None else autowire_ignores,
        )
        self._lock_mode = lock_mode

        self._definitions: dict[TypeKey, Factory] = {}
        self._instances: dict[TypeKey, Any] = {}
        # Settings classes the container registered itself while autowiring
        self._autowired_settings: set[TypeKey] = set()
        self._inspector = ConstructorInspector()

        # Per-key locks so that different singletons never block each other
        self._singleton_locks: dict[TypeKey, threading.Lock] = {}
        self._singleton_locks_lock = threading.Lock()

        self.instance(Container, self)
        if type(self) is not Container:
            self.instance(type(self), self)

    def register(self, key: Any, factory: Factory) -> Self:
        """Register a transient factory for ``key``.

        Any previous registration for ``key`` is replaced, together with a
        singleton instance it may have cached.

        Args:
            key: Class or other hashable identifier to register.
            factory: Callable receiving the container and returning an instance.

        Returns:
            The container itself, for chaining.

        """
        type_key = TypeKey.from_value(key)
        self._definitions[type_key] = factory
        self._instances.pop(type_key, None)
        self._autowired_settings.discard(type_key)
        logger.debug("Registered %s", type_key)
        return self

    def singleton(self, key: Any, factory: Factory) -> Self:
        """Register a factory whose first result is shared by every resolution of ``key``.

        The factory runs at most once per registration, even when several
        threads resolve ``key`` concurrently. If it raises, nothing is cached
        and the next resolution calls it again.
        """
        type_key = TypeKey.from_value(key)
        instances = self._instances

        def shared(container: Container) -> Any:
            cached = instances.get(type_key, _MISSING)
            if cached is not _MISSING:
                return cached
            with self._get_singleton_lock(type_key):
                # Double-check: another thread may have finished first
                cached = instances.get(type_key, _MISSING)
                if cached is not _MISSING:
                    return cached
                instance = factory(container)
                instances[type_key] = instance
                logger.debug("Created singleton %s", type_key)
                return instance

        return self.register(type_key, shared)

    def instance(self, key: Any, value: Any) -> Self:
        """Register an already built object under ``key``."""
        type_key = TypeKey.from_value(key)
        self.register(type_key, lambda _container: value)
        self._instances[type_key] = value
        return self

    def bind(self, key: Any, concrete: type[Any], *, singleton: bool = False) -> Self:
        """Resolve ``key`` (typically an abstract class) by making ``concrete``."""
        type_key = TypeKey.from_value(key)
        concrete_key = TypeKey.from_value(concrete)

        def build(container: Container) -> Any:
            if concrete_key == type_key:
                cls = container._get_autowire_target(concrete_key)
                return container._synthesize(concrete_key, cls, {}, share_settings=False)(
                    container,
                )
            return container.make(concrete_key)

        if singleton:
            return self.singleton(type_key, build)
        return self.register(type_key, build)

    def has(self, key: Any) -> bool:
        """Return whether ``key`` has an explicit registration."""
        return TypeKey.from_value(key) in self._definitions

    def __contains__(self, key: Any) -> bool:
        return self.has(key)

    @overload
    def make(self, key: type[T], parameters: Mapping[str, Any] | None = None) -> T: ...

    @overload
    def make(self, key: Any, parameters: Mapping[str, Any] | None = None) -> Any: ...

    def make(self, key: Any, parameters: Mapping[str, Any] | None = None) -> Any:
        """Resolve and return an instance for ``key``.

        A registered factory is used when one exists; otherwise the key is
        autowired. Resolution is all-or-nothing: either a fully built object
        is returned or an exception is raised.

        Args:
            key: Class or other identifier to resolve.
            parameters: Constructor arguments by name that override recursive
                resolution when ``key`` is autowired. Ignored for registered keys.

        Raises:
            WireboxUnknownTypeError: If ``key`` is not registered and cannot be
                autowired.
            WireboxUnresolvableDependencyError: If a constructor parameter has
                no usable type, or ``key`` is abstract.
            WireboxCyclicDependencyError: If ``key`` depends on itself,
                directly or transitively.
            WireboxConstructionError: If a factory or constructor raises.

        """
        type_key = TypeKey.from_value(key)
        with resolving(type_key):
            factory = self._definitions.get(type_key)
            if factory is None or (parameters and type_key in self._autowired_settings):
                factory = self.autowire(type_key, parameters)
            elif parameters:
                logger.debug(
                    "Ignoring explicit parameters %s for registered %s",
                    sorted(parameters),
                    type_key,
                )
            try:
                return factory(self)
            except WireboxError:
                raise
            except Exception as e:
                raise WireboxConstructionError(type_key, e) from e

    def autowire(self, key: Any, parameters: Mapping[str, Any] | None = None) -> Factory:
        """Build a factory that constructs ``key`` from its constructor signature.

        Each constructor parameter takes, in order of preference, the value
        from ``parameters``, a recursively resolved instance of its annotated
        type, or its default value.

        Raises:
            WireboxUnknownTypeError: If ``key`` is not an autowirable class.
            WireboxUnresolvableDependencyError: If ``key`` is abstract.

        """
        type_key = TypeKey.from_value(key)
        cls = self._get_autowire_target(type_key)
        return self._synthesize(type_key, cls, dict(parameters or {}), share_settings=True)

    def _synthesize(
        self,
        type_key: TypeKey,
        cls: type[Any],
        explicit: dict[str, Any],
        *,
        share_settings: bool,
    ) -> Factory:
        if is_pydantic_settings_subclass(cls):
            if explicit or not share_settings:
                return lambda _container: cls(**explicit)
            return self._register_settings(type_key, cls)

        def build(container: Container) -> Any:
            return container._construct(type_key, cls, explicit)

        return build

    def _register_settings(self, type_key: TypeKey, cls: type[Any]) -> Factory:
        # Threads autowiring the same settings class must agree on one registration
        with self._singleton_locks_lock:
            factory = self._definitions.get(type_key)
            if factory is None:
                # Settings are read from the environment once and shared
                self.singleton(type_key, lambda _container: cls())
                self._autowired_settings.add(type_key)
                factory = self._definitions[type_key]
        return factory

    def _construct(self, type_key: TypeKey, cls: type[Any], explicit: dict[str, Any]) -> Any:
        signature = self._inspector.get_signature(cls)

        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        unmatched = sorted(explicit.keys() - signature.names())
        if unmatched:
            if signature.accepts_extra_kwargs:
                kwargs.update({name: explicit[name] for name in unmatched})
            else:
                logger.warning(
                    "Ignoring explicit parameters %s: %s has no such constructor parameters",
                    unmatched,
                    type_key,
                )

        for param in signature.parameters:
            value = self._resolve_parameter(type_key, param, explicit)
            if param.keyword_only:
                kwargs[param.name] = value
            else:
                args.append(value)

        logger.debug("Autowiring %s with %d argument(s)", type_key, len(args) + len(kwargs))
        return cls(*args, **kwargs)

    def _resolve_parameter(
        self,
        owner: TypeKey,
        param: ParameterInfo,
        explicit: dict[str, Any],
    ) -> Any:
        if param.name in explicit:
            return explicit[param.name]

        declared = param.annotation
        if declared is not None and self._can_resolve(declared):
            return self.make(declared)

        if param.has_default:
            return param.default

        raise WireboxUnresolvableDependencyError(
            owner,
            self._describe_unresolvable(declared),
            parameter=param.name,
        )

    def _can_resolve(self, declared: Any) -> bool:
        try:
            if TypeKey.from_value(declared) in self._definitions:
                return True
        except TypeError:
            # Unhashable annotation, e.g. Annotated with unhashable metadata
            return False
        return (
            self._autowire
            and is_runtime_class(declared)
            and not self._is_excluded(declared)
            and not is_abstract_class(declared)
        )

    def _describe_unresolvable(self, declared: Any) -> str:
        if declared is None:
            return "parameter has no type annotation and no default"
        if not is_runtime_class(declared):
            return f"annotation {declared!r} is not registered and is not a class"

        name = TypeKey.from_value(declared).name
        if not self._autowire:
            return f"'{name}' is not registered and autowiring is disabled"
        if self._is_excluded(declared):
            return f"'{name}' cannot be autowired; pass the value as an explicit parameter"
        return f"'{name}' is abstract and has no registration"

    def _get_autowire_target(self, type_key: TypeKey) -> type[Any]:
        value = type_key.value
        if not self._autowire:
            raise WireboxUnknownTypeError(type_key, "autowiring is disabled")
        if not is_runtime_class(value):
            raise WireboxUnknownTypeError(type_key, "key is not a class")
        if self._is_excluded(value):
            raise WireboxUnknownTypeError(type_key, "type is excluded from autowiring")
        if is_abstract_class(value):
            raise WireboxUnresolvableDependencyError(
                type_key,
                "abstract classes and protocols need a registered implementation",
            )
        return value

    def _is_excluded(self, cls: type[Any]) -> bool:
        return (
            cls in self._autowire_ignores
            or cls.__module__ == "builtins"
            or issubclass(cls, type)
        )

    def _get_singleton_lock(self, key: TypeKey) -> AbstractContextManager[Any]:
        """Get or create the lock guarding singleton construction for ``key``.

        Uses double-checked locking to minimize contention on the guard lock.
        """
        if self._lock_mode is LockMode.NONE:
            return nullcontext()
        lock = self._singleton_locks.get(key)
        if lock is None:
            with self._singleton_locks_lock:
                lock = self._singleton_locks.get(key)
                if lock is None:
                    lock = threading.Lock()
                    self._singleton_locks[key] = lock
        return lock
