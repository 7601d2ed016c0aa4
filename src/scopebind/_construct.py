from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any, TypeVar, get_type_hints


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from ._container import Container

T = TypeVar("T")


class Constructor:
    """Builds a class by resolving each constructor parameter through a container."""

    def __init__(self, resolver: Container) -> None:
        self._resolver = resolver

    def construct(self, cls: type[T]) -> T:
        if cls.__init__ is object.__init__:  # type: ignore[misc]
            return cls()

        sig = inspect.signature(cls)
        hints = _get_init_type_hints(cls)

        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for name, p in sig.parameters.items():
            # *args / **kwargs are never injected
            if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD):
                continue

            value = self._resolver.resolve_param(cls, name, p, hints)
            if p.kind is p.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[name] = value

        return cls(*args, **kwargs)


def _get_init_type_hints(cls: type) -> dict[str, Any]:
    try:
        init = inspect.getattr_static(cls, "__init__")
        hints = get_type_hints(init)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        hints = {}

    return hints
