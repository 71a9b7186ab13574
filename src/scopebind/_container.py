from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Any, TypeVar, Union, overload

from ._annotations import TransientScope, has_annotation, read_annotations
from ._deferred import Deferred
from ._errors import (
    ConfigurationError,
    CyclicDependencyError,
    InstantiationError,
    InvalidTokenError,
    NoProviderError,
    SyncOnPromiseProviderError,
)
from ._modules import ClassModule, FactoryModule, ValueModule, as_module, is_constructible
from ._providers import ClassProvider, FactoryProvider, ValueProvider, create_provider_from_fn_or_class
from ._token import to_string


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from ._profiler import InjectorObserver

    T = TypeVar("T")

Provider = Union[ValueProvider, FactoryProvider, ClassProvider]

_NO_TOKEN = object()


def construct_resolving_message(resolving: Sequence[Any], token: Any = _NO_TOKEN) -> str:
    """Render the resolution chain, `` (A -> B -> C)``, or nothing for a single token."""
    path = list(resolving) if token is _NO_TOKEN else [*resolving, token]

    if len(path) > 1:
        return f" ({' -> '.join(to_string(t) for t in path)})"

    return ""


async def _settle(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class Injector:
    """A node in a tree of life scopes.

    There is exactly one instance per token per injector. Registrations are fixed
    once constructed (apart from default providers promoted on first request);
    the only growing state is the cache.

    - resolve tokens into providers and instances (cache or provider call)
    - deal with promise-typed and lazy dependencies
    - create child injectors, optionally forcing new instances of scoped providers
    """

    def __init__(
        self,
        modules: Iterable[object] = (),
        parent: Injector | None = None,
        providers: dict[Any, Provider] | None = None,
        scopes: Iterable[object] = (),
        *,
        observer: InjectorObserver | None = None,
    ) -> None:
        self._parent = parent
        self._providers: dict[Any, Provider] = {} if providers is None else providers
        self._scopes = tuple(scopes)
        self._cache: dict[Any, Any] = {}

        if observer is None and parent is not None:
            observer = parent._observer
        self._observer = observer

        self._load_modules(modules)

        if self._observer is not None:
            self._observer.injector_created(self)

    @property
    def parent(self) -> Injector | None:
        return self._parent

    def _load_modules(self, modules: Iterable[object]) -> None:
        for module in modules:
            self._load_module(as_module(module))

    def _load_module(self, module: ValueModule | FactoryModule | ClassModule) -> None:
        token = module.provide

        if isinstance(module, ValueModule):
            provider: Provider = ValueProvider(module.value, is_promise=module.is_promise)
        else:
            subject = module.cls if isinstance(module, ClassModule) else module.factory
            annotations = read_annotations(subject)
            is_promise = module.is_promise or annotations.provide.is_promise

            # A declared @provide token wins over the module key
            if annotations.provide.token is not None:
                token = annotations.provide.token

            if isinstance(module, ClassModule):
                provider = ClassProvider(subject, annotations.params, is_promise=is_promise)
            else:
                provider = FactoryProvider(subject, annotations.params, is_promise=is_promise)

        self._providers[token] = provider

    def _collect_providers_with_annotation(self, marker: object, collected: dict[Any, Provider]) -> None:
        """Collect registered providers (own and ancestors') whose subject carries ``marker``."""
        for token, provider in self._providers.items():
            if token not in collected and has_annotation(provider.provider, marker):
                collected[token] = provider

        if self._parent is not None:
            self._parent._collect_providers_with_annotation(marker, collected)

    def _has_provider_for(self, token: Any) -> bool:
        if token in self._providers:
            return True

        if self._parent is not None:
            return self._parent._has_provider_for(token)

        return False

    def _instantiate_default_provider(
        self,
        provider: Provider,
        token: Any,
        resolving: list[Any],
        want_promise: bool,
        want_lazy: bool,
    ) -> Any:
        """Find the injector that owns an implicit provider, register it there and resolve.

        That is the root, unless an injector on the way up was created to force
        new instances of a scope the provider's subject carries.
        """
        forced = any(has_annotation(provider.provider, marker) for marker in self._scopes)

        if self._parent is None or forced:
            logger.debug("Registering default provider for %s", to_string(token))
            self._providers[token] = provider
            return self.get(token, resolving, want_promise, want_lazy)

        return self._parent._instantiate_default_provider(provider, token, resolving, want_promise, want_lazy)

    @overload
    def get(self, token: type[T]) -> T: ...

    @overload
    def get(
        self,
        token: Any,
        resolving: list[Any] | None = ...,
        want_promise: bool = ...,
        want_lazy: bool = ...,
    ) -> Any: ...

    def get(  # noqa: C901
        self,
        token: Any,
        resolving: list[Any] | None = None,
        want_promise: bool = False,
        want_lazy: bool = False,
    ) -> Any:
        """Return an instance for the token.

        ``resolving`` is the chain of tokens being resolved, used for cycle
        detection and error messages. With ``want_promise`` the result is a
        ``Deferred``; with ``want_lazy`` it is a callable that resolves on demand.
        """
        if resolving is None:
            resolving = []

        # Special case, return itself.
        if token is Injector:
            return Deferred.resolved(self) if want_promise else self

        if token is None:
            msg = f'Invalid token "{token}" requested!{construct_resolving_message(resolving, token)}'
            raise InvalidTokenError(msg)

        if want_lazy:
            return self._create_lazy(token, resolving, want_promise)

        if token in self._cache:
            instance = self._cache[token]
            provider = self._providers[token]

            if provider.is_promise and not want_promise:
                raise SyncOnPromiseProviderError(_sync_on_promise_message(token, [*resolving, token]))

            if not provider.is_promise and want_promise:
                return Deferred.resolved(instance)

            return instance

        provider = self._providers.get(token)

        # Not registered anywhere: the token provides itself
        if provider is None and is_constructible(token) and not self._has_provider_for(token):
            provider = create_provider_from_fn_or_class(token)
            return self._instantiate_default_provider(provider, token, resolving, want_promise, want_lazy)

        if provider is None:
            if self._parent is None:
                msg = f"No provider for {to_string(token)}!{construct_resolving_message(resolving, token)}"
                raise NoProviderError(msg)

            return self._parent.get(token, resolving, want_promise, want_lazy)

        if token in resolving:
            msg = f"Cannot instantiate cyclic dependency!{construct_resolving_message(resolving, token)}"
            raise CyclicDependencyError(msg)

        resolving.append(token)
        try:
            # Asked for a promise with a sync dependency: fetch everything as
            # promises and instantiate once they have all settled.
            delaying_instantiation = want_promise and any(not param.is_promise for param in provider.params)
            args = [
                self.get(
                    param.token,
                    resolving,
                    True if delaying_instantiation else param.is_promise,
                    param.is_lazy,
                )
                for param in provider.params
            ]

            if delaying_instantiation:
                return Deferred(self._instantiate_when_ready(provider, token, args, list(resolving)))

            instance = self._create(provider, token, args, resolving)
            if provider.is_promise:
                instance = Deferred.wrap(instance)

            if not has_annotation(provider.provider, TransientScope):
                self._cache[token] = instance

            # Cached before raising: a later get_promise awaits this same pending instance.
            if not want_promise and provider.is_promise:
                raise SyncOnPromiseProviderError(_sync_on_promise_message(token, resolving))

            if want_promise and not provider.is_promise:
                instance = Deferred.resolved(instance)

            return instance
        finally:
            resolving.pop()

    def _create(self, provider: Provider, token: Any, args: Sequence[Any], resolving: Sequence[Any]) -> Any:
        logger.debug("Instantiating %s%s", to_string(token), construct_resolving_message(resolving))
        try:
            return provider.create(args)
        except Exception as exc:
            msg = (
                f"Error during instantiation of {to_string(token)}!{construct_resolving_message(resolving)}\n"
                f"ORIGINAL ERROR: {exc}"
            )
            raise InstantiationError(msg) from exc

    async def _instantiate_when_ready(
        self,
        provider: Provider,
        token: Any,
        args: Sequence[Any],
        resolving: list[Any],
    ) -> Any:
        # Concurrent requests for the same uncached token are not coalesced;
        # each one builds its own instance and the last one is cached.
        resolved_args = await asyncio.gather(*(_settle(arg) for arg in args))

        instance = self._create(provider, token, resolved_args, resolving)
        if provider.is_promise:
            instance = Deferred.wrap(instance)

        if not has_annotation(provider.provider, TransientScope):
            self._cache[token] = instance

        if provider.is_promise:
            return await instance

        return instance

    def _create_lazy(self, token: Any, resolving: list[Any], want_promise: bool) -> Callable[..., Any]:
        injector = self

        def create_lazy_instance(*args: Any) -> Any:
            """Resolve now. ``args`` are ``(token, value)`` pairs overriding dependencies locally."""
            if len(args) % 2:
                msg = (
                    f"Lazy {to_string(token)} expects (token, value) pairs, got {len(args)} arguments."
                    f"{construct_resolving_message(resolving, token)}"
                )
                raise ConfigurationError(msg)

            lazy_injector = injector
            if args:
                locals_ = [ValueModule(args[i], args[i + 1]) for i in range(0, len(args), 2)]
                lazy_injector = injector.create_child(locals_)

            return lazy_injector.get(token, resolving, want_promise, False)

        return create_lazy_instance

    @overload
    def get_promise(self, token: type[T]) -> Deferred[T]: ...

    @overload
    def get_promise(self, token: Any) -> Deferred[Any]: ...

    def get_promise(self, token: Any) -> Deferred[Any]:
        return self.get(token, [], True)

    def create_child(
        self,
        modules: Iterable[object] = (),
        force_new_instances_of: Iterable[object] = (),
    ) -> Injector:
        """Create a child injector, a shorter life scope.

        The child can add providers of its own, and gets fresh instances of every
        provider (here or in any ancestor) whose subject carries one of the
        ``force_new_instances_of`` markers. ``TransientScope`` is always forced.
        """
        scopes = [*force_new_instances_of, TransientScope]
        forced_providers: dict[Any, Provider] = {}

        for marker in scopes:
            self._collect_providers_with_annotation(marker, forced_providers)

        if forced_providers:
            logger.debug(
                "Child injector forces new instances of %s",
                ", ".join(to_string(token) for token in forced_providers),
            )

        return type(self)(modules, self, forced_providers, scopes)


def _sync_on_promise_message(token: Any, resolving: Sequence[Any]) -> str:
    return (
        f"Cannot instantiate {to_string(token)} synchronously. "
        f"It is provided as a promise!{construct_resolving_message(resolving)}"
    )
