"""Providers create instances.

The injector reads ``provider.params`` first, resolves those dependencies
(however it wants), then calls ``provider.create(args)`` with the resolved
values in the same order.
"""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any

from ._annotations import Annotations, ParamDescriptor, SuperConstructor, params_owner, read_annotations
from ._errors import ConfigurationError
from ._token import to_string


if TYPE_CHECKING:
    from collections.abc import Callable, Sequence


class ValueProvider:
    def __init__(self, value: object, *, is_promise: bool = False) -> None:
        self.provider = value
        self.is_promise = is_promise
        self.params: tuple[ParamDescriptor, ...] = ()

    def create(self, args: Sequence[Any]) -> object:  # noqa: ARG002
        return self.provider


class FactoryProvider:
    def __init__(
        self,
        factory: Callable[..., object],
        params: Sequence[ParamDescriptor],
        *,
        is_promise: bool = False,
    ) -> None:
        for param in params:
            if param.token is SuperConstructor:
                msg = (
                    f"{to_string(factory)} is not a class. "
                    "Only classes with a parent can ask for SuperConstructor!"
                )
                raise ConfigurationError(msg)

        self.provider = factory
        self.is_promise = is_promise
        self.params = tuple(params)

    def create(self, args: Sequence[Any]) -> object:
        return self.provider(*args)


class ClassProvider:
    """Instantiates classes.

    A class may ask for ``SuperConstructor`` to chain into its parent ``__init__``
    with injected arguments. All constructors in the chain get their params
    flattened into a single tuple, so the injector does not need to know about
    inheritance; ``_constructors`` records which slice belongs to which class.
    """

    def __init__(self, cls: type, params: Sequence[ParamDescriptor], *, is_promise: bool = False) -> None:
        self.provider = cls
        self.is_promise = is_promise

        flat: list[ParamDescriptor] = []
        constructors: list[tuple[type, int, int]] = []
        self._flatten_params(cls, params, flat, constructors)
        constructors.insert(0, (cls, 0, len(flat)))

        self.params = tuple(flat)
        self._constructors = tuple(constructors)

    def _flatten_params(
        self,
        cls: type,
        params: Sequence[ParamDescriptor],
        flat: list[ParamDescriptor],
        constructors: list[tuple[type, int, int]],
    ) -> None:
        for param in params:
            if param.token is not SuperConstructor:
                flat.append(param)
                continue

            # params may be inherited, the parent is the one above their owner
            parent = params_owner(cls).__mro__[1]
            if parent is object:
                msg = (
                    f"{to_string(cls)} does not have a parent constructor. "
                    "Only classes with a parent can ask for SuperConstructor!"
                )
                raise ConfigurationError(msg)

            index = len(constructors)
            start = len(flat)
            constructors.append((parent, start, start))
            self._flatten_params(parent, read_annotations(parent).params, flat, constructors)
            constructors[index] = (parent, start, len(flat))

    def _create_constructor(self, index: int, receiver: object, args: Sequence[Any]) -> Callable[[], Any]:
        """Bind the ``__init__`` of constructor ``index`` to its slice of ``args``.

        A ``SuperConstructor`` position gets the bound constructor of the next level.
        """
        cls, start, end = self._constructors[index]

        if index + 1 < len(self._constructors):
            _, next_start, next_end = self._constructors[index + 1]
            bound_args = [
                *args[start:next_start],
                self._create_constructor(index + 1, receiver, args),
                *args[next_end:end],
            ]
        else:
            bound_args = list(args[start:end])

        def injected_and_bound_super_constructor() -> Any:
            return cls.__init__(receiver, *bound_args)

        return injected_and_bound_super_constructor

    def create(self, args: Sequence[Any]) -> object:
        receiver = self.provider.__new__(self.provider)
        returned = self._create_constructor(0, receiver, args)()

        if returned is not None:
            return returned

        return receiver


def create_provider_from_fn_or_class(
    fn_or_class: Any,
    annotations: Annotations | None = None,
    *,
    is_promise: bool = False,
) -> ClassProvider | FactoryProvider:
    if annotations is None:
        annotations = read_annotations(fn_or_class)

    is_promise = is_promise or annotations.provide.is_promise

    if inspect.isclass(fn_or_class):
        return ClassProvider(fn_or_class, annotations.params, is_promise=is_promise)

    return FactoryProvider(fn_or_class, annotations.params, is_promise=is_promise)
