from __future__ import annotations

import functools
import inspect
import sys
from dataclasses import dataclass
from typing import Any, Callable, Iterator, List, NoReturn, Optional, Set, TypeVar

from .errors import InvalidAction

Action = Callable[[], None]

F = TypeVar("F", bound=Callable[..., Any])

_NOTHROW_ATTR = "__scopeguard_nothrow__"

# Return annotations that carry no value. Strings cover postponed annotations.
_VOID_RETURNS = {None, type(None), NoReturn, "None", "NoReturn", "Never", "typing.NoReturn", "typing.Never"}

if sys.version_info >= (3, 11):
    from typing import Never

    _VOID_RETURNS.add(Never)


def nothrow(func: F) -> F:
    """
    Declare a function (or a `__call__` / `__del__` method) as non-raising.

    The marker is part of the declaration, so it is visible without calling
    anything. Wrapping the function (functools.partial, a lambda) drops it.
    """
    setattr(func, _NOTHROW_ATTR, True)
    return func


def _is_marked_nothrow(func: Any) -> bool:
    return getattr(func, _NOTHROW_ATTR, False) is True


def _call_target(obj: Any) -> Any:
    """
    Resolve the function whose declaration describes `obj()`.

    - functions and builtins: themselves
    - bound methods: the underlying function
    - functools.partial: the wrapped callable (recursively)
    - instances: the class' __call__
    """
    if isinstance(obj, functools.partial):
        return _call_target(obj.func)
    if inspect.ismethod(obj):
        return obj.__func__
    if inspect.isfunction(obj) or inspect.isbuiltin(obj) or inspect.isclass(obj):
        return obj
    call = getattr(type(obj), "__call__", None)
    return call if call is not None else obj


def _signature(obj: Any) -> Optional[inspect.Signature]:
    try:
        return inspect.signature(obj)
    except (TypeError, ValueError):
        # No introspectable signature (some C builtins).
        return None


def _is_deferred(func: Any) -> bool:
    return (
        inspect.iscoroutinefunction(func)
        or inspect.isgeneratorfunction(func)
        or inspect.isasyncgenfunction(func)
    )


def _captured(obj: Any) -> Iterator[Any]:
    """Objects the action keeps alive and releases together with it."""
    if isinstance(obj, functools.partial):
        yield obj.func
        yield from obj.args
        yield from obj.keywords.values()
    elif inspect.ismethod(obj) or inspect.isbuiltin(obj):
        yield getattr(obj, "__self__", None)
    elif inspect.isfunction(obj):
        for cell in obj.__closure__ or ():
            try:
                yield cell.cell_contents
            except ValueError:  # empty cell
                continue


def is_noarg_callable(obj: Any) -> bool:
    if not callable(obj):
        return False
    sig = _signature(obj)
    if sig is None:
        return True
    try:
        sig.bind()
    except TypeError:
        return False
    return True


def returns_void(obj: Any) -> bool:
    """
    True when calling `obj` is declared to produce no value.

    Unannotated callables pass; a declared non-None return type is rejected
    even though the result could be discarded.
    """
    if not callable(obj):
        return False
    if inspect.isclass(obj):
        # Calling a class constructs an instance.
        return False
    if _is_deferred(obj) or _is_deferred(_call_target(obj)):
        # The call only builds a coroutine/generator; the body never runs.
        return False
    sig = _signature(obj)
    if sig is None:
        return True
    ret = sig.return_annotation
    if ret is inspect.Signature.empty:
        return True
    try:
        return ret in _VOID_RETURNS
    except TypeError:  # unhashable annotation object
        return False


def is_nothrow_invocable_if_required(obj: Any, require_nothrow: bool) -> bool:
    if not require_nothrow:
        return True
    if isinstance(obj, functools.partial):
        return False
    return _is_marked_nothrow(_call_target(obj))


def is_nothrow_destructible(obj: Any) -> bool:
    """
    True when dropping `obj` cannot run a raising finalizer.

    Follows what the action owns: the instance behind a bound method, the
    callable and bound arguments of a partial, and a function's closure cells.
    """
    seen: Set[int] = set()
    pending = [obj]
    while pending:
        current = pending.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))
        finalizer = getattr(type(current), "__del__", None)
        if finalizer is not None and not _is_marked_nothrow(finalizer):
            return False
        pending.extend(_captured(current))
    return True


def is_proper_callback(obj: Any, require_nothrow: bool = False) -> bool:
    return (
        is_noarg_callable(obj)
        and returns_void(obj)
        and is_nothrow_invocable_if_required(obj, require_nothrow)
        and is_nothrow_destructible(obj)
    )


@dataclass(frozen=True)
class CallbackCheck:
    decision: str  # allow|deny
    reason_codes: List[str]
    summary: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.decision == "allow"


def check_callback(obj: Any, require_nothrow: bool = False) -> CallbackCheck:
    """
    Evaluate every check (no short-circuit) so diagnostics list all failures.
    Never calls `obj`.
    """
    reasons: List[str] = []
    problems: List[str] = []

    if not is_noarg_callable(obj):
        reasons.append("callback.not_noarg_callable")
        problems.append("must be callable with no arguments")
    if not returns_void(obj):
        reasons.append("callback.returns_value")
        problems.append("must not declare a return value or defer its body (async def, generator)")
    if not is_nothrow_invocable_if_required(obj, require_nothrow):
        reasons.append("callback.may_raise")
        problems.append("must be declared @nothrow when nothrow is required")
    if not is_nothrow_destructible(obj):
        reasons.append("callback.finalizer_may_raise")
        problems.append("its __del__, or that of an object it captures, must be declared @nothrow")

    if reasons:
        return CallbackCheck(
            decision="deny",
            reason_codes=reasons,
            summary="Invalid scope guard action {!r}: {}".format(obj, "; ".join(problems)),
        )
    return CallbackCheck(decision="allow", reason_codes=["callback.ok"], summary="Valid scope guard action")


def require_proper_callback(obj: Any, require_nothrow: bool = False) -> None:
    result = check_callback(obj, require_nothrow)
    if not result.allowed:
        raise InvalidAction(
            code="callback.invalid",
            message=result.summary or "Invalid scope guard action",
            data={"reasons": result.reason_codes, "require_nothrow": require_nothrow},
        )
