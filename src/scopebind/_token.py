from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

from ._errors import NoProviderError


if TYPE_CHECKING:
    from collections.abc import Callable


def token_error_message(key: str) -> str:
    return f'No provider defined for key "{key}"'


def create_token(key: str) -> Callable[[], NoReturn]:
    """Create an opaque token for values that are not classes (e.g. configuration).

    The token is a factory that always fails, so resolving it without a
    registered value reports the key instead of building something.

    Example:
      config_token = create_token("config")
      injector = Injector([ValueModule(config_token, {"env": "prod"})])

    """

    def opaque_token() -> NoReturn:
        raise NoProviderError(token_error_message(key))

    opaque_token.__name__ = key
    opaque_token.__qualname__ = key
    return opaque_token


def to_string(token: object) -> str:
    if isinstance(token, str):
        return token

    if token is None:
        return "None"

    name = getattr(token, "__name__", None)
    if isinstance(name, str) and name:
        return name

    return str(token)
