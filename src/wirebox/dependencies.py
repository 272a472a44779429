from __future__ import annotations

import inspect
from dataclasses import dataclass
from types import GenericAlias
from typing import Any, get_type_hints

from wirebox.exceptions import WireboxUnresolvableDependencyError
from wirebox.type_key import TypeKey

_SKIPPED_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


def _declared_type(param: inspect.Parameter, type_hints: dict[str, Any]) -> Any | None:
    # Python 3.10 wraps hints of parameters defaulting to None in Optional[...];
    # a class written directly in the signature is taken as declared.
    annotation = param.annotation
    if isinstance(annotation, type) and not isinstance(annotation, GenericAlias):
        return annotation
    return type_hints.get(param.name)


@dataclass(frozen=True, slots=True)
class ParameterInfo:
    """A single constructor parameter as seen by the autowiring algorithm."""

    name: str
    annotation: Any | None
    default: Any = inspect.Parameter.empty
    keyword_only: bool = False

    @property
    def has_default(self) -> bool:
        return self.default is not inspect.Parameter.empty


@dataclass(frozen=True, slots=True)
class ConstructorSignature:
    """Ordered constructor parameters of a class."""

    parameters: tuple[ParameterInfo, ...]
    accepts_extra_kwargs: bool = False

    def names(self) -> set[str]:
        return {param.name for param in self.parameters}


class ConstructorInspector:
    """Extract ordered, type-hinted constructor parameters from classes.

    Results are cached per class; hints are evaluated once with
    ``typing.get_type_hints`` so string annotations are supported as long as
    they can be resolved from the class's module.
    """

    def __init__(self) -> None:
        self._cache: dict[type[Any], ConstructorSignature] = {}

    def get_signature(self, cls: type[Any]) -> ConstructorSignature:
        cached = self._cache.get(cls)
        if cached is not None:
            return cached

        init_func = cls.__init__
        if init_func is object.__init__:
            result = ConstructorSignature(parameters=())
            self._cache[cls] = result
            return result

        key = TypeKey.from_value(cls)
        try:
            sig = inspect.signature(init_func)
        except (TypeError, ValueError) as e:
            raise WireboxUnresolvableDependencyError(
                key,
                f"constructor signature is not inspectable ({e})",
            ) from e
        try:
            type_hints = get_type_hints(init_func)
        except (TypeError, NameError) as e:
            raise WireboxUnresolvableDependencyError(
                key,
                f"constructor type hints cannot be evaluated ({e})",
            ) from e

        # Drop the bound instance parameter
        declared = list(sig.parameters.values())[1:]

        parameters = tuple(
            ParameterInfo(
                name=param.name,
                annotation=_declared_type(param, type_hints),
                default=param.default,
                keyword_only=param.kind is inspect.Parameter.KEYWORD_ONLY,
            )
            for param in declared
            if param.kind not in _SKIPPED_KINDS
        )
        result = ConstructorSignature(
            parameters=parameters,
            accepts_extra_kwargs=any(
                param.kind is inspect.Parameter.VAR_KEYWORD for param in declared
            ),
        )
        self._cache[cls] = result
        return result
