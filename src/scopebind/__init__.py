"""Hierarchical dependency injection.

An ``Injector`` resolves tokens (classes, functions, opaque tokens) into
instances, recursively resolving and caching their dependencies.

Exports:
- `Injector`: a scope node with a provider registry, an instance cache and an
  optional parent. `create_child()` opens a shorter lived scope.
- `ValueModule`, `FactoryModule`, `ClassModule`: provider recipes.
- `Deferred`: the awaitable returned for promise-typed resolutions.
- annotations (`inject`, `inject_promise`, `inject_lazy`, `provide`,
  `provide_promise`, `scope`, `transient`, ...) declaring dependencies, and
  the built-in `SuperConstructor` token and `TransientScope` marker.
- `create_token`: opaque tokens for values that are not classes.
- `GraphProfiler`: optional observer dumping the injector graph.
"""

from ._annotations import (
    Annotations,
    Inject,
    InjectLazy,
    InjectPromise,
    ParamDescriptor,
    Provide,
    ProvideDescriptor,
    ProvidePromise,
    SuperConstructor,
    TransientScope,
    annotate,
    has_annotation,
    inject,
    inject_lazy,
    inject_promise,
    provide,
    provide_promise,
    read_annotations,
    scope,
    transient,
    use_token,
)
from ._container import Injector
from ._deferred import Deferred
from ._errors import (
    ConfigurationError,
    CyclicDependencyError,
    DIError,
    InstantiationError,
    InvalidTokenError,
    NoProviderError,
    SyncOnPromiseProviderError,
)
from ._modules import ClassModule, FactoryModule, ValueModule
from ._profiler import GraphProfiler, InjectorObserver
from ._providers import ClassProvider, FactoryProvider, ValueProvider, create_provider_from_fn_or_class
from ._token import create_token, token_error_message


__all__ = [
    "Annotations",
    "ClassModule",
    "ClassProvider",
    "ConfigurationError",
    "CyclicDependencyError",
    "DIError",
    "Deferred",
    "FactoryModule",
    "FactoryProvider",
    "GraphProfiler",
    "Inject",
    "InjectLazy",
    "InjectPromise",
    "Injector",
    "InjectorObserver",
    "InstantiationError",
    "InvalidTokenError",
    "NoProviderError",
    "ParamDescriptor",
    "Provide",
    "ProvideDescriptor",
    "ProvidePromise",
    "SuperConstructor",
    "SyncOnPromiseProviderError",
    "TransientScope",
    "ValueModule",
    "ValueProvider",
    "annotate",
    "create_provider_from_fn_or_class",
    "create_token",
    "has_annotation",
    "inject",
    "inject_lazy",
    "inject_promise",
    "provide",
    "provide_promise",
    "read_annotations",
    "scope",
    "token_error_message",
    "transient",
    "use_token",
]
