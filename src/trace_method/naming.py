from __future__ import annotations

from typing import Any, Callable

from trace_method.exceptions import SpanNameError

_LOCALS_MARKER = "<locals>."


def _strip_locals(qualname: str) -> str:
    # "test_x.<locals>.TargetClass.sync_add" -> "TargetClass.sync_add"
    _, _, tail = qualname.rpartition(_LOCALS_MARKER)
    return tail


def _is_named(name: Any) -> bool:
    return isinstance(name, str) and name.isidentifier()


def resolve_span_name(
    func: Callable[..., Any],
    *,
    span_name: str | None = None,
    owner: type | None = None,
    member: str | None = None,
    separator: str = ".",
) -> str:
    """Resolve the span name for ``func`` once, at wrap time.

    An explicit ``span_name`` wins. With an ``owner`` the name is the owner's
    qualified name and the member name joined by ``separator``. Otherwise the
    callable's ``__qualname__`` is used, minus any enclosing function scope,
    so methods defined in a class body come out as ``Owner<sep>method``.

    Raises:
        SpanNameError: if no name was given and the callable has no usable
            identity (lambdas, partials, bare callable objects).
    """
    if span_name:
        return span_name

    name = getattr(func, "__name__", None)

    if owner is not None:
        owner_name = getattr(owner, "__qualname__", None) or getattr(owner, "__name__", None)
        member_name = member or name
        if not owner_name or not _is_named(member_name):
            raise SpanNameError(
                message=f"Cannot derive span name for member {member_name!r} of {owner!r}",
                data={"owner": repr(owner)},
            )
        return f"{_strip_locals(owner_name)}{separator}{member_name}"

    if not _is_named(name):
        raise SpanNameError(
            message=f"Cannot derive span name for anonymous callable {func!r}; pass span_name explicitly",
        )

    qualname = getattr(func, "__qualname__", None) or name
    owner_part, _, member_part = _strip_locals(qualname).rpartition(".")
    if owner_part:
        return f"{owner_part}{separator}{member_part}"
    return member_part
