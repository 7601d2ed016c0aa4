from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Sequence

    from ._container import Lifetime


def token_name(token: Any) -> str:
    """Human readable name of a service token (class name or the string itself)."""
    if isinstance(token, str):
        return token
    return getattr(token, "__name__", None) or repr(token)


@dataclass(frozen=True)
class ServiceInfo:
    token: Any
    name: str
    lifetime: Lifetime
    resolved: bool  # cached instance exists


def format_dependency_tree(services: Sequence[ServiceInfo], modules: Sequence[str] = ()) -> str:
    lines = ["Dependency container status:"]
    if modules:
        lines.append(f"Modules: {', '.join(modules)}")

    for info in services:
        state = "resolved" if info.resolved else "pending"
        lines.append(f"  {info.name} [{info.lifetime.value}] ({state})")

    lines.append(f"Total services: {len(services)}")
    return "\n".join(lines)
