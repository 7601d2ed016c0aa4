from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, overload, runtime_checkable

from ._container import Lifetime


if TYPE_CHECKING:
    from collections.abc import Callable

    from ._container import Container

    ModuleFunc = Callable[[Container], None]


@runtime_checkable
class Module(Protocol):
    """A named group of registrations applied to a container at startup.

    Implementations may expose a ``name`` attribute; the class name is used otherwise.
    """

    def register_services(self, container: Container) -> None: ...


@dataclass(frozen=True)
class FunctionModule:
    name: str
    func: ModuleFunc

    def register_services(self, container: Container) -> None:
        self.func(container)


@overload
def module(func: ModuleFunc, /) -> FunctionModule: ...


@overload
def module(*, name: str | None = ...) -> Callable[[ModuleFunc], FunctionModule]: ...


def module(func: ModuleFunc | None = None, /, *, name: str | None = None) -> Any:
    """Turn a plain ``fn(container)`` into a module.

    Example:
      @module
      def database(container): ...

      @module(name="services")
      def register_services(container): ...

    """

    def decorate(f: ModuleFunc) -> FunctionModule:
        return FunctionModule(name=name or f.__name__, func=f)

    if func is not None:
        return decorate(func)
    return decorate


class AutoRegistrable:
    """Base for services that register themselves.

    The class itself is a module: pass it to `Container.apply_modules`. It is registered
    under `token` (the class by default) with `lifetime` (singleton by default).

    Example:
      class PinService(AutoRegistrable):
          lifetime = Lifetime.TRANSIENT

      container.apply_modules([PinService])

    """

    token: ClassVar[Any] = None
    lifetime: ClassVar[Lifetime] = Lifetime.SINGLETON

    @classmethod
    def register_services(cls, container: Container) -> None:
        container.register(cls if cls.token is None else cls.token, impl=cls, lifetime=cls.lifetime)
