from __future__ import annotations

import dataclasses
import inspect
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from operator import attrgetter
from typing import TYPE_CHECKING, Any, TypeVar, overload

from ._construct import Constructor
from ._diagnostics import ServiceInfo, format_dependency_tree, token_name
from ._errors import (
    CircularDependencyError,
    DuplicateRegistrationError,
    ModuleApplicationError,
    ResolutionError,
    ScopeError,
    UnregisteredServiceError,
)
from ._validation import check_implementation, check_instance, is_protocol


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator
    from types import TracebackType
    from typing import TextIO

    from ._modules import Module

    T = TypeVar("T")

    Token = type[T] | str

_UNSET: Any = object()


def _module_name(mod: Module) -> str:
    if inspect.isclass(mod):
        return mod.__name__
    return getattr(mod, "name", None) or type(mod).__name__


class Lifetime(Enum):
    SINGLETON = "singleton"
    TRANSIENT = "transient"
    SCOPED = "scoped"


@dataclass
class Registration:
    factory: Callable[[Container], object] | None
    impl: type | None
    lifetime: Lifetime
    cached_instance: object = _UNSET  # singleton / scoped slot

    @property
    def resolved(self) -> bool:
        return self.cached_instance is not _UNSET

    def build(self, container: Container) -> object:
        if self.factory is not None:
            return self.factory(container)
        return Constructor(container).construct(self.impl)  # type: ignore[arg-type]


class _InFlight(threading.local):
    def __init__(self) -> None:
        self.chain: list[Any] = []


class _ResolutionTracker:
    """Per-thread stack of tokens under construction, shared by a container and its scopes."""

    def __init__(self) -> None:
        self._local = _InFlight()

    @contextmanager
    def enter(self, token: Any) -> Iterator[None]:
        chain = self._local.chain
        if token in chain:
            raise CircularDependencyError((*chain[chain.index(token) :], token))

        chain.append(token)
        try:
            yield
        finally:
            chain.pop()


class Container:
    """Lifecycle-aware DI container.

    - register factories, implementation types or pre-built instances
    - resolve with constructor injection
    - lifetimes: singleton / transient / scoped
    - scopes, modules and diagnostics.
    """

    def __init__(self, *, autowire: bool = False) -> None:
        self.autowire = autowire
        self._registrations: dict[Any, Registration] = {}
        self._applied_modules: list[str] = []
        self._lock = threading.RLock()
        self._tracker = _ResolutionTracker()

    # Registration

    @overload
    def register(
        self,
        token: type[T],
        impl: type[T] | None = ...,
        *,
        factory: Callable[[Container], T] | None = ...,
        lifetime: Lifetime = ...,
    ) -> None: ...

    @overload
    def register(
        self,
        token: str,
        impl: type | None = ...,
        *,
        factory: Callable[[Container], Any] | None = ...,
        lifetime: Lifetime = ...,
    ) -> None: ...

    def register(
        self,
        token: Token[T],
        impl: type | None = None,
        *,
        factory: Callable[[Container], Any] | None = None,
        lifetime: Lifetime = Lifetime.SINGLETON,
    ) -> None:
        """Register a concrete type or a factory for a token.

        Raises DuplicateRegistrationError when the token is already registered.

        Example:
          container.register(IFoo, FooImpl)
          container.register("db", factory=create_db, lifetime=Lifetime.SINGLETON)

        """
        self._store(token, self._make_registration(token, impl, factory, lifetime), replace=False)

    def register_or_replace(
        self,
        token: Token[T],
        impl: type | None = None,
        *,
        factory: Callable[[Container], Any] | None = None,
        lifetime: Lifetime = Lifetime.SINGLETON,
    ) -> None:
        """Same as `register`, but the last registration wins and its cached instance is dropped."""
        self._store(token, self._make_registration(token, impl, factory, lifetime), replace=True)

    def register_instance(
        self,
        token: Token[T],
        instance: object,
        *,
        replace: bool = False,
    ) -> None:
        """Register a pre-built instance (always singleton)."""
        check_instance(token, instance)
        reg = Registration(factory=None, impl=None, lifetime=Lifetime.SINGLETON, cached_instance=instance)
        self._store(token, reg, replace=replace)

    def _make_registration(
        self,
        token: Any,
        impl: type | None,
        factory: Callable[[Container], Any] | None,
        lifetime: Lifetime,
    ) -> Registration:
        if impl is not None and factory is not None:
            msg = "Provide either `impl` or `factory`, not both."
            raise ValueError(msg)

        if impl is None and factory is None:
            msg = "Either `impl` or `factory` must be provided."
            raise ValueError(msg)

        if factory is not None and not callable(factory):
            msg = f"Factory for {token_name(token)!r} is not callable: {factory!r}"
            raise TypeError(msg)

        if impl is not None:
            check_implementation(token, impl)

        return Registration(factory=factory, impl=impl, lifetime=Lifetime(lifetime))

    def _store(self, token: Any, reg: Registration, *, replace: bool) -> None:
        with self._lock:
            self._check_open()
            previous = self._registrations.get(token)
            if previous is not None and not replace:
                raise DuplicateRegistrationError(token)
            self._registrations[token] = reg

        if previous is None:
            logger.debug("Registered %s [%s]", token_name(token), reg.lifetime.value)
        elif previous.resolved:
            logger.debug("Replaced %s [%s], cached instance discarded", token_name(token), reg.lifetime.value)
        else:
            logger.debug("Replaced %s [%s]", token_name(token), reg.lifetime.value)

    def is_registered(self, token: Any) -> bool:
        return self._lookup(token) is not None

    def keys(self) -> frozenset[Any]:
        with self._lock:
            return frozenset(self._registrations)

    def _lookup(self, token: Any) -> tuple[Container, Registration] | None:
        with self._lock:
            reg = self._registrations.get(token)
        return None if reg is None else (self, reg)

    # Resolution

    @overload
    def resolve(self, token: type[T]) -> T: ...

    @overload
    def resolve(self, token: str) -> Any: ...

    def resolve(self, token: Token[T]) -> object:
        """Resolve the token to an instance.

        - singleton / scoped: build once, then return the cached instance.
        - transient: build on every call.
        - unregistered: UnregisteredServiceError, or auto-wiring when enabled and the token is a class.
        """
        with self._lock:
            self._check_open()
            reg = self._registrations.get(token)
            if reg is None:
                return self._resolve_unregistered(token)

            if reg.lifetime is Lifetime.TRANSIENT:
                return self._create(token, reg)

            if reg.lifetime is Lifetime.SCOPED:
                self._require_scope(token)

            if not reg.resolved:
                reg.cached_instance = self._create(token, reg)
            return reg.cached_instance

    @overload
    def try_resolve(self, token: type[T], default: T | None = ...) -> T | None: ...

    @overload
    def try_resolve(self, token: str, default: Any = ...) -> Any: ...

    def try_resolve(self, token: Token[T], default: Any = None) -> object:
        """Resolve the token, or return `default` when the token itself is not registered.

        Failures while building a registered service still propagate.
        """
        try:
            return self.resolve(token)
        except UnregisteredServiceError as exc:
            if exc.token != token:
                raise
            return default

    def _resolve_unregistered(self, token: Any) -> object:
        if self._can_autowire(token):
            with self._tracker.enter(token):
                return Constructor(self).construct(token)

        raise UnregisteredServiceError(token)

    def _require_scope(self, token: Any) -> None:
        msg = f"{token_name(token)!r} has a scoped lifetime and can only be resolved inside a scope; use create_scope()"
        raise ScopeError(msg)

    def _check_open(self) -> None:
        pass

    def _can_autowire(self, token: Any) -> bool:
        return (
            self.autowire
            and inspect.isclass(token)
            and getattr(token, "__module__", "") != "builtins"
            and not is_protocol(token)
            and not inspect.isabstract(token)
        )

    def _create(self, token: Any, reg: Registration) -> object:
        with self._tracker.enter(token):
            instance = reg.build(self)

        if inspect.isawaitable(instance):
            if inspect.iscoroutine(instance):
                instance.close()
            msg = (
                f"Factory for {token_name(token)!r} returned an awaitable. "
                "Resolution is synchronous; prepare async dependencies before registering."
            )
            raise ResolutionError(msg)

        if reg.factory is not None:
            check_instance(token, instance)

        logger.debug("Created %s [%s]", token_name(token), reg.lifetime.value)
        return instance

    def resolve_param(
        self,
        cls: type,
        name: str,
        p: inspect.Parameter,
        hints: dict[str, Any],
    ) -> Any:
        """Resolve one constructor parameter of `cls`.

        Resolution precedence:
        1. type-based registration (or auto-wiring)
        2. name-based registration
        3. default
        4. error.
        """
        ann = hints.get(name, inspect.Signature.empty)
        if ann is not inspect.Signature.empty and (self.is_registered(ann) or self._can_autowire(ann)):
            return self.resolve(ann)

        if self.is_registered(name):
            return self.resolve(name)

        if p.default is not inspect.Parameter.empty:
            return p.default

        ann_repr = getattr(ann, "__name__", repr(ann)) if ann is not inspect.Signature.empty else "no-annotation"
        msg = (
            f"Cannot satisfy constructor parameter '{name}' for {cls.__name__}. "
            f"No registration/default found (annotation: {ann_repr})."
        )
        raise ResolutionError(msg)

    # Scopes

    def create_scope(self) -> Scope:
        """Create a scope that prefers its own registrations/instances, falls back to parent."""
        self._check_open()
        return Scope(self, _from_parent=True)

    # Modules

    def apply_modules(self, modules: Iterable[Module]) -> None:
        """Apply modules in order.

        Fail fast: the first failing module raises ModuleApplicationError, later modules
        are skipped and earlier ones stay applied.
        """
        for mod in modules:
            name = _module_name(mod)
            with self._lock:
                if name in self._applied_modules:
                    raise ModuleApplicationError(name, "module was already applied")

            logger.info("Applying module %s", name)
            try:
                mod.register_services(self)
            except Exception as exc:
                raise ModuleApplicationError(name, f"{type(exc).__name__}: {exc}") from exc

            with self._lock:
                self._applied_modules.append(name)

    @property
    def applied_modules(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._applied_modules)

    # Diagnostics

    def describe(self) -> list[ServiceInfo]:
        with self._lock:
            infos = [
                ServiceInfo(token=token, name=token_name(token), lifetime=reg.lifetime, resolved=reg.resolved)
                for token, reg in self._registrations.items()
            ]
        return sorted(infos, key=attrgetter("name"))

    def dependency_tree(self) -> str:
        return format_dependency_tree(self.describe(), self.applied_modules)

    def print_dependency_tree(self, file: TextIO | None = None) -> None:
        print(self.dependency_tree(), file=file)  # noqa: T201

    def reset(self) -> None:
        """Drop every registration, cached instance and applied module."""
        with self._lock:
            self._registrations.clear()
            self._applied_modules.clear()
        logger.debug("Container reset")


class Scope(Container):
    """A scoped container that looks up in itself first, then falls back to a parent container.

    Scoped services are built once per scope. Useful for per-request/per-test lifetimes
    without altering root registrations.
    """

    def __init__(self, parent: Container, *, _from_parent: bool = False) -> None:
        if not _from_parent:
            msg = "Scope instances must be created via Container.create_scope()"
            raise RuntimeError(msg)
        super().__init__(autowire=parent.autowire)
        self._parent = parent
        self._tracker = parent._tracker  # noqa: SLF001
        # token -> (registration it was built from, instance)
        self._scoped_instances: dict[Any, tuple[Registration, object]] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Drop the scope's registrations and cached instances. Further use raises ScopeError."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            released = len(self._scoped_instances) + sum(reg.resolved for reg in self._registrations.values())
            self._scoped_instances.clear()
            self._registrations.clear()
        logger.debug("Scope closed, %d cached instance(s) released", released)

    def __enter__(self) -> Scope:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _check_open(self) -> None:
        if self._closed:
            msg = "Scope is closed"
            raise ScopeError(msg)

    def _require_scope(self, token: Any) -> None:
        pass

    def _lookup(self, token: Any) -> tuple[Container, Registration] | None:
        self._check_open()
        return super()._lookup(token) or self._parent._lookup(token)  # noqa: SLF001

    def keys(self) -> frozenset[Any]:
        return super().keys() | self._parent.keys()

    def _resolve_unregistered(self, token: Any) -> object:
        found = self._parent._lookup(token)  # noqa: SLF001
        if found is None:
            return super()._resolve_unregistered(token)

        owner, reg = found
        if reg.lifetime is Lifetime.SINGLETON:
            return owner.resolve(token)

        # transient and scoped factories see this scope as their container
        if reg.lifetime is Lifetime.TRANSIENT:
            return self._create(token, reg)

        cached = self._scoped_instances.get(token)
        if cached is not None and cached[0] is reg:
            return cached[1]

        # first use, or the owner replaced the registration since it was cached
        instance = self._create(token, reg)
        self._scoped_instances[token] = (reg, instance)
        return instance

    def _is_scoped_cached(self, token: Any) -> bool:
        cached = self._scoped_instances.get(token)
        if cached is None:
            return False
        found = self._parent._lookup(token)  # noqa: SLF001
        return found is not None and found[1] is cached[0]

    def describe(self) -> list[ServiceInfo]:
        with self._lock:
            merged = {
                info.token: (
                    dataclasses.replace(info, resolved=self._is_scoped_cached(info.token))
                    if info.lifetime is Lifetime.SCOPED
                    else info
                )
                for info in self._parent.describe()
            }
            merged.update((info.token, info) for info in super().describe())
        return sorted(merged.values(), key=attrgetter("name"))

    def reset(self) -> None:
        with self._lock:
            self._scoped_instances.clear()
        super().reset()
