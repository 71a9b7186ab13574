from __future__ import annotations

import itertools
import json
from typing import TYPE_CHECKING, Any, Protocol

from ._container import Injector
from ._token import to_string


if TYPE_CHECKING:
    from ._container import Provider


class InjectorObserver(Protocol):
    def injector_created(self, injector: Injector) -> None: ...


class GraphProfiler:
    """Observer recording the injector tree and its providers for visualisation.

    Pass it as ``Injector(..., observer=GraphProfiler())``; child injectors
    inherit it. Each injector is serialized when it is created:

        {"id": "1", "parent_id": None, "providers": {"2": {"id": "2", "name": "Injector", ...}}}

    Ids are per profiler and stable: the same token always gets the same id.
    """

    def __init__(self) -> None:
        self._ids: dict[int, str] = {}
        self._keep_alive: list[object] = []
        self._counter = itertools.count(1)
        self.injectors: list[dict[str, Any]] = []

    def _serialize_token(self, token: object) -> str:
        # keyed by identity so unhashable tokens and injectors work too
        key = id(token)
        if key not in self._ids:
            self._ids[key] = str(next(self._counter))
            self._keep_alive.append(token)
        return self._ids[key]

    def _serialize_provider(self, token: object, provider: Provider) -> dict[str, Any]:
        return {
            "id": self._serialize_token(token),
            "name": to_string(token),
            "is_promise": provider.is_promise,
            "dependencies": [
                {
                    "token": self._serialize_token(param.token),
                    "is_promise": param.is_promise,
                    "is_lazy": param.is_lazy,
                }
                for param in provider.params
            ],
        }

    def injector_created(self, injector: Injector) -> None:
        parent = injector.parent
        serialized: dict[str, Any] = {
            "id": self._serialize_token(injector),
            "parent_id": self._serialize_token(parent) if parent is not None else None,
            "providers": {},
        }

        injector_id = self._serialize_token(Injector)
        serialized["providers"][injector_id] = {
            "id": injector_id,
            "name": to_string(Injector),
            "is_promise": False,
            "dependencies": [],
        }

        for token, provider in injector._providers.items():  # noqa: SLF001
            serialized_provider = self._serialize_provider(token, provider)
            serialized["providers"][serialized_provider["id"]] = serialized_provider

        self.injectors.append(serialized)

    def dump(self) -> dict[str, Any]:
        return {"injectors": self.injectors}

    def to_json(self, **kwargs: Any) -> str:
        return json.dumps(self.dump(), **kwargs)
