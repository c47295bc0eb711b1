from __future__ import annotations

from typing import Optional

from .callback_traits import Action, require_proper_callback
from .errors import UnsupportedExitType
from .exit_policy import DEFAULT_ERROR_SIGNAL, ErrorSignal, ExitType, supported_exit_types
from .guard import ScopeGuard, _FACTORY_TOKEN
from .runtime_context import GuardContext
from ..trace.trace_emitter import TraceEmitter
from ..trace.trace_store_jsonl import TraceStoreJSONL


def _trace_for(ctx: GuardContext) -> Optional[TraceEmitter]:
    if ctx.trace_path is None:
        return None
    return TraceEmitter(store=TraceStoreJSONL(ctx.trace_path), run_id=ctx.run_id)


def make_scope_guard(
    action: Action,
    exit_type: ExitType = ExitType.ALWAYS,
    *,
    context: Optional[GuardContext] = None,
    error_signal: Optional[ErrorSignal] = DEFAULT_ERROR_SIGNAL,
) -> ScopeGuard:
    """
    Bind `action` to a new, active ScopeGuard.

    Everything that can reject the action happens here, before a guard
    exists: the exit type must be offered by the runtime's error signal and
    the action must pass the callback contract (strict when
    context.require_nothrow). The action is held by reference, never copied.
    """
    if context is None:
        from ..config import default_context  # local import to avoid cycles

        context = default_context()

    exit_type = ExitType(exit_type)
    offered = supported_exit_types(error_signal)
    if exit_type not in offered:
        raise UnsupportedExitType(
            code="exit_type.unsupported",
            message=f"Exit type {exit_type.value} needs a propagating-error signal",
            data={"exit_type": exit_type.value, "supported": [e.value for e in offered]},
        )

    require_proper_callback(action, require_nothrow=context.require_nothrow)

    guard = ScopeGuard(
        action,
        exit_type,
        error_signal=error_signal,
        trace=_trace_for(context),
        _token=_FACTORY_TOKEN,
    )
    guard._emit(
        "guard_created",
        message="Guard created",
        data={"action": repr(action), "require_nothrow": context.require_nothrow},
    )
    return guard
