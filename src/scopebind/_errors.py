from __future__ import annotations

from typing import Any

from ._diagnostics import token_name


class ContainerError(RuntimeError):
    """Base class for every error raised by the container itself."""


class DuplicateRegistrationError(ContainerError):
    def __init__(self, token: Any) -> None:
        self.token = token
        super().__init__(
            f"Token {token_name(token)!r} is already registered. Use register_or_replace() to overwrite it."
        )


class ModuleApplicationError(ContainerError):
    def __init__(self, module_name: str, reason: str) -> None:
        self.module_name = module_name
        super().__init__(f"Module {module_name!r} failed to apply: {reason}")


class ResolutionError(ContainerError):
    pass


class UnregisteredServiceError(ResolutionError, LookupError):
    def __init__(self, token: Any) -> None:
        self.token = token
        super().__init__(f"No registration found for token: {token_name(token)!r}")


class CircularDependencyError(ResolutionError):
    def __init__(self, chain: tuple[Any, ...]) -> None:
        self.chain = chain
        super().__init__("Circular dependency detected: " + " -> ".join(token_name(t) for t in chain))


class ScopeError(ContainerError):
    """Scoped service used outside a scope, or a closed scope used again (resolve, register or nest)."""
