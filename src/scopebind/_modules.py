from __future__ import annotations

import inspect
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from ._errors import ConfigurationError


if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass(frozen=True)
class ValueModule:
    provide: Any
    value: Any
    is_promise: bool = False


@dataclass(frozen=True)
class FactoryModule:
    provide: Any
    factory: Callable[..., Any]
    is_promise: bool = False


@dataclass(frozen=True)
class ClassModule:
    provide: Any
    cls: type
    is_promise: bool = False


Module = Union[ValueModule, FactoryModule, ClassModule]

_MAPPING_KINDS = {
    "use_value": ValueModule,
    "use_factory": FactoryModule,
    "use_class": ClassModule,
}


def is_constructible(value: object) -> bool:
    return inspect.isclass(value) or inspect.isroutine(value)


def as_module(obj: object) -> Module:
    """Normalize a module declaration.

    Accepted:
    - a ``ValueModule`` / ``FactoryModule`` / ``ClassModule``
    - a mapping: ``{"provide": token, "use_value" | "use_factory" | "use_class": ..., "is_promise": bool}``
    - a bare class or function, which provides itself

    Raise ConfigurationError for anything else.
    """
    if isinstance(obj, (ValueModule, FactoryModule, ClassModule)):
        return obj

    if inspect.isclass(obj):
        return ClassModule(obj, obj)

    if inspect.isroutine(obj):
        return FactoryModule(obj, obj)

    if isinstance(obj, Mapping) and "provide" in obj:
        kinds = [key for key in _MAPPING_KINDS if key in obj]
        if len(kinds) == 1:
            kind = kinds[0]
            return _MAPPING_KINDS[kind](obj["provide"], obj[kind], bool(obj.get("is_promise", False)))

        msg = f"Invalid module! Expected exactly one of {', '.join(_MAPPING_KINDS)}, got {list(obj)!r}."
        raise ConfigurationError(msg)

    msg = f"Invalid module! {obj!r}"
    raise ConfigurationError(msg)
