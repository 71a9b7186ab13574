class DIError(RuntimeError):
    """Base class of every error raised by the injector."""


class InvalidTokenError(DIError):
    pass


class ConfigurationError(DIError):
    """Malformed module or a provider that can never be built."""


class NoProviderError(DIError):
    pass


class CyclicDependencyError(DIError):
    pass


class SyncOnPromiseProviderError(DIError):
    """A promise-typed provider was requested synchronously."""


class InstantiationError(DIError):
    """User construction code raised; the original error is the ``__cause__``."""
