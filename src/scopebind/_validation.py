from __future__ import annotations

import inspect
import typing
from typing import Any, Protocol, cast, get_type_hints


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def is_protocol(tp: object) -> bool:
        return inspect.isclass(tp) and typing.is_protocol(tp)

else:

    def is_protocol(tp: object) -> bool:
        """Detect whether 'tp' is a typing.Protocol class (safe)."""
        # non-protocol subclasses of a protocol get _is_protocol = False
        return inspect.isclass(tp) and tp is not Protocol and bool(getattr(tp, "_is_protocol", False))


def is_runtime_protocol(tp: object) -> bool:
    if not is_protocol(tp):
        return False

    try:
        isinstance(None, cast("type", tp))
    except TypeError:
        return False
    else:
        return True


def check_implementation(token: Any, impl: object) -> None:
    """Validate an implementation class registered for a class token.

    - For normal classes/ABCs: require issubclass(impl, token).
    - For Protocols: nominal via MRO, otherwise structural conformance.

    String tokens are not validated.
    """
    if not inspect.isclass(impl):
        msg = f"Implementation {impl!r} must be a class; use factory= for callables."
        raise TypeError(msg)

    if not inspect.isclass(token):
        return

    if not is_protocol(token):
        if not issubclass(impl, token):
            msg = f"Implementation {impl.__name__} must be a subclass of {token.__name__}"
            raise TypeError(msg)
        return

    _check_protocol(token, impl, label=impl.__name__)


def check_instance(token: Any, instance: object) -> None:
    """Validate an instance produced by a factory (or registered directly) for a class token."""
    if not inspect.isclass(token):
        return

    label = type(instance).__name__
    if not is_protocol(token):
        if not isinstance(instance, token):
            msg = f"Resolved instance {label} is not an instance of {token.__name__}"
            raise TypeError(msg)
        return

    if is_runtime_protocol(token) and not isinstance(instance, token):
        msg = f"Resolved instance {label} does not implement runtime protocol {token.__name__}"
        raise TypeError(msg)

    _check_protocol(token, instance, label=label)


def _check_protocol(proto: type, target: object, *, label: str) -> None:
    impl = target if inspect.isclass(target) else type(target)
    if proto in getattr(impl, "__mro__", ()):
        return

    problems = _structural_problems(proto, impl, target)
    if problems:
        msg = (
            f"Implementation {label} does not structurally conform to protocol {proto.__name__}: "
            f"{'; '.join(problems)}"
        )
        raise TypeError(msg)


def _required_positional(params: list[inspect.Parameter]) -> int:
    return sum(
        1
        for p in params
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        and p.default is inspect.Parameter.empty
    )


def _structural_problems(proto: type, impl: type, target: object) -> list[str]:
    """Best-effort structural check: member presence and required positional arity.

    Data members are looked up on `target` (class or instance), methods on the class.
    """
    missing: list[str] = []
    mismatches: list[str] = []

    try:
        annotated = get_type_hints(proto)
    except (TypeError, NameError):
        annotated = {}

    for name in annotated:
        if not name.startswith("_") and not hasattr(target, name):
            missing.append(name)

    for name, member in proto.__dict__.items():
        if name.startswith("_") or not inspect.isfunction(member):
            continue

        if not hasattr(impl, name):
            missing.append(name)
            continue

        impl_member = getattr(impl, name)
        if not callable(impl_member):
            mismatches.append(f"{name}: not callable")
            continue

        try:
            proto_params = [p for p in inspect.signature(member).parameters.values() if p.name != "self"]
            impl_params = [p for p in inspect.signature(impl_member).parameters.values() if p.name != "self"]
        except (TypeError, ValueError) as e:
            mismatches.append(f"{name}: unable to compare signatures ({e})")
            continue

        if _required_positional(impl_params) < _required_positional(proto_params):
            mismatches.append(
                f"{name}: implementation requires fewer positional params "
                f"({_required_positional(impl_params)}) than protocol ({_required_positional(proto_params)})"
            )

    problems = []
    if missing:
        problems.append(f"missing members: {', '.join(missing)}")
    if mismatches:
        problems.append(f"signature mismatches: {', '.join(mismatches)}")
    return problems
