"""Lifecycle-aware dependency injection container.

This package provides an in-process service container for Python, allowing
registration and resolution of factories, implementation types and pre-built
instances with singleton, transient or scoped lifetimes.

Exports:
- `Container`: Main DI container supporting registration, resolution, modules and diagnostics.
- `Lifetime`: Enum for controlling object lifetimes (singleton, transient or scoped).
- `Scope`: Child container that owns scoped instances and falls back to its parent.
  Useful for per-request or per-test lifetimes.
- `Module` / `module`: Named groups of registrations applied at startup.
- `AutoRegistrable`: Base class for services that register themselves as a module.
- Errors: `ContainerError` and its subclasses.
"""

from ._container import Container, Lifetime, Scope
from ._diagnostics import ServiceInfo
from ._errors import (
    CircularDependencyError,
    ContainerError,
    DuplicateRegistrationError,
    ModuleApplicationError,
    ResolutionError,
    ScopeError,
    UnregisteredServiceError,
)
from ._modules import AutoRegistrable, FunctionModule, Module, module


__all__ = [
    "AutoRegistrable",
    "CircularDependencyError",
    "Container",
    "ContainerError",
    "DuplicateRegistrationError",
    "FunctionModule",
    "Lifetime",
    "Module",
    "ModuleApplicationError",
    "ResolutionError",
    "Scope",
    "ScopeError",
    "ServiceInfo",
    "UnregisteredServiceError",
    "module",
]
