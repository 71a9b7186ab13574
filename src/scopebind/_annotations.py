from __future__ import annotations

import inspect
import logging
import typing
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Annotated, Any, TypeVar, get_type_hints

from ._errors import ConfigurationError
from ._token import to_string


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable

    T = TypeVar("T")

ANNOTATIONS_ATTR = "__di_annotations__"


class SuperConstructor:
    """Built-in token: a class constructor asks for its pre-injected parent constructor."""


class TransientScope:
    """Built-in scope: never cache."""


class Inject:
    """Declare dependency tokens, in parameter order.

    Used on a class or function (``annotate(Foo, Inject(A, B))`` or ``@inject(A, B)``),
    or as ``Annotated`` metadata on a single parameter (``a: Annotated[A, Inject()]``),
    where an empty token list means "the annotated type".
    """

    is_promise = False
    is_lazy = False

    def __init__(self, *tokens: object) -> None:
        self.tokens = tokens

    def __repr__(self) -> str:
        return f"{type(self).__name__}({', '.join(to_string(t) for t in self.tokens)})"


class InjectPromise(Inject):
    is_promise = True


class InjectLazy(Inject):
    is_lazy = True


class Provide:
    is_promise = False

    def __init__(self, token: object) -> None:
        if token is None:
            msg = f"{type(self).__name__} requires a token."
            raise ValueError(msg)
        self.token = token

    def __repr__(self) -> str:
        return f"{type(self).__name__}({to_string(self.token)})"


class ProvidePromise(Provide):
    is_promise = True


@dataclass(frozen=True)
class ParamDescriptor:
    token: Any
    is_promise: bool = False
    is_lazy: bool = False


@dataclass(frozen=True)
class ProvideDescriptor:
    token: Any = None
    is_promise: bool = False


@dataclass(frozen=True)
class Annotations:
    provide: ProvideDescriptor = field(default_factory=ProvideDescriptor)
    params: tuple[ParamDescriptor, ...] = ()


def use_token(token: object) -> Inject:
    return Inject(token)


def annotate(target: object, annotation: object) -> None:
    """Prepend an annotation on a function or class.

    Prepending makes stacked decorators read top to bottom. A subclass gets its
    own list, so annotating it never changes what its parent declares.
    """
    if inspect.isclass(target):
        own = target.__dict__.get(ANNOTATIONS_ATTR)
    else:
        own = getattr(target, ANNOTATIONS_ATTR, None)

    if own is None:
        own = []
        setattr(target, ANNOTATIONS_ATTR, own)

    own.insert(0, annotation)


def _annotating(*annotations: object) -> Callable[[T], T]:
    def decorator(target: T) -> T:
        for annotation in reversed(annotations):
            annotate(target, annotation)
        return target

    return decorator


def inject(*tokens: object) -> Callable[[T], T]:
    return _annotating(Inject(*tokens))


def inject_promise(*tokens: object) -> Callable[[T], T]:
    return _annotating(InjectPromise(*tokens))


def inject_lazy(*tokens: object) -> Callable[[T], T]:
    return _annotating(InjectLazy(*tokens))


def provide(token: object) -> Callable[[T], T]:
    return _annotating(Provide(token))


def provide_promise(token: object) -> Callable[[T], T]:
    return _annotating(ProvidePromise(token))


def scope(*markers: object) -> Callable[[T], T]:
    """Attach scope markers, checked by ``Injector.create_child(force_new_instances_of=...)``."""
    return _annotating(*markers)


transient = scope(TransientScope)


def _get_annotations(target: object) -> list[object]:
    if not (inspect.isclass(target) or inspect.isroutine(target)):
        target = type(target)

    return getattr(target, ANNOTATIONS_ATTR, None) or []


def has_annotation(target: object, marker: object) -> bool:
    for annotation in _get_annotations(target):
        if annotation is marker:
            return True
        if inspect.isclass(marker) and isinstance(annotation, marker):
            return True

    return False


def read_annotations(target: object) -> Annotations:
    """Read annotations on a function, class or instance and collect its provide token and params.

    Class level ``Inject*`` annotations define the params when present.
    Otherwise they are inferred from the type hints of ``__init__`` (classes)
    or of the function itself. For classes, params belong to the nearest class
    in the MRO that either declares them or defines ``__init__``.
    """
    if not (inspect.isclass(target) or inspect.isroutine(target)):
        target = type(target)

    provide_descriptor = ProvideDescriptor()
    for annotation in _get_annotations(target):
        if isinstance(annotation, Provide):
            provide_descriptor = ProvideDescriptor(annotation.token, is_promise=annotation.is_promise)

    if inspect.isclass(target):
        params = _class_params(target)
    else:
        declared = _declared_params(_get_annotations(target))
        params = declared if declared is not None else _params_from_signature(target)

    return Annotations(provide=provide_descriptor, params=params)


def _declared_params(annotations: list[object]) -> tuple[ParamDescriptor, ...] | None:
    declared: list[ParamDescriptor] | None = None

    for annotation in annotations:
        if isinstance(annotation, Inject):
            if declared is None:
                declared = []
            declared.extend(
                ParamDescriptor(token, is_promise=annotation.is_promise, is_lazy=annotation.is_lazy)
                for token in annotation.tokens
            )

    return None if declared is None else tuple(declared)


def params_owner(cls: type) -> type:
    """Return the nearest class in the MRO that declares ``Inject*`` annotations or defines ``__init__``."""
    for klass in cls.__mro__:
        if "__init__" in klass.__dict__ or _declared_params(klass.__dict__.get(ANNOTATIONS_ATTR) or []) is not None:
            return klass

    return object


def _class_params(cls: type) -> tuple[ParamDescriptor, ...]:
    owner = params_owner(cls)
    declared = _declared_params(owner.__dict__.get(ANNOTATIONS_ATTR) or [])
    if declared is not None:
        return declared

    return _params_from_signature(owner)


def _params_from_signature(target: Any) -> tuple[ParamDescriptor, ...]:  # noqa: C901
    if inspect.isclass(target):
        if target.__init__ is object.__init__:
            return ()
        func = inspect.getattr_static(target, "__init__")
        bound_receiver = True
    else:
        func = target
        bound_receiver = False

    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return ()

    hints = _get_type_hints(target, func)
    parameters = list(sig.parameters.values())
    if bound_receiver:
        parameters = parameters[1:]

    params: list[ParamDescriptor] = []
    for p in parameters:
        # Arguments are passed positionally
        if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD, p.KEYWORD_ONLY):
            break

        hint = hints.get(p.name, inspect.Signature.empty)
        marker = _inject_marker(hint)
        if marker is not None:
            token = marker.tokens[0] if marker.tokens else typing.get_args(hint)[0]
            params.append(ParamDescriptor(token, is_promise=marker.is_promise, is_lazy=marker.is_lazy))
            continue

        has_default = p.default is not inspect.Parameter.empty
        if hint is inspect.Signature.empty or hint is Any:
            if has_default:
                break
            msg = (
                f"Cannot read a token for parameter '{p.name}' of {to_string(target)}. "
                f"Add a type hint or declare the tokens with @inject(...)."
            )
            raise ConfigurationError(msg)

        # builtins and typing constructs with a default (port: int = 80, db: DB | None = None)
        # keep the default
        if has_default and (not inspect.isclass(hint) or hint.__module__ == "builtins"):
            break

        params.append(ParamDescriptor(hint))

    return tuple(params)


def _inject_marker(hint: object) -> Inject | None:
    if typing.get_origin(hint) is Annotated:
        for meta in hint.__metadata__:  # type: ignore[attr-defined]
            if isinstance(meta, Inject):
                return meta

    return None


def _get_type_hints(target: Any, func: Any) -> dict[str, Any]:
    try:
        hints = get_type_hints(func, include_extras=True)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning(
            "'%s' name error retrieving %s (%s) type hints",
            exc.name,
            to_string(target),
            getattr(target, "__qualname__", ""),
        )
        hints = {}

    return hints
