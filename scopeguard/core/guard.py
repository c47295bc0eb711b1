from __future__ import annotations

import os
import sys
import traceback
import uuid
import warnings
from enum import Enum
from typing import Any, NoReturn, Optional, cast

from .callback_traits import Action
from .errors import GuardStateError
from .exit_policy import ErrorSignal, ExitType, should_run
from ..trace.trace_emitter import TraceEmitter

# Only holders of this token (make_scope_guard, relocate) may construct guards.
_FACTORY_TOKEN = object()

_UNSET: Any = object()


class GuardState(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DESTROYED = "destroyed"


def terminate(guard_id: str, exc: BaseException) -> NoReturn:
    """
    Abort the process after an action raised during end of life.

    The exception is reported on stderr and never re-raised: a cleanup that
    can fail cannot be composed with unwinding that is already in progress.
    """
    print(
        f"scopeguard: action of guard {guard_id} raised during scope exit; aborting",
        file=sys.stderr,
    )
    traceback.print_exception(type(exc), exc, exc.__traceback__, file=sys.stderr)
    sys.stderr.flush()
    os.abort()


class ScopeGuard:
    """
    Runs one action when the enclosing `with` block exits.

    Invariants:
    - at most one live guard holds the right to invoke a given action
      (no copy; relocate() transfers it)
    - active only goes True -> False (dismiss, relocation source)
    - end of life happens once; it invokes the action iff the guard is active
      and the exit policy says so at that instant
    """

    __slots__ = (
        "_action",
        "_exit_type",
        "_active",
        "_destroyed",
        "_entered",
        "_guard_id",
        "_error_signal",
        "_trace",
        "__weakref__",
    )

    def __init__(
        self,
        action: Action,
        exit_type: ExitType = ExitType.ALWAYS,
        *,
        error_signal: Optional[ErrorSignal] = None,
        trace: Optional[TraceEmitter] = None,
        active: bool = True,
        _token: object = None,
    ):
        if _token is not _FACTORY_TOKEN:
            raise TypeError("ScopeGuard cannot be constructed directly; use make_scope_guard()")
        self._action: Optional[Action] = action
        self._exit_type = exit_type
        self._active = active
        self._destroyed = False
        self._entered = False
        self._guard_id = "sg_" + uuid.uuid4().hex[:12]
        self._error_signal = error_signal
        self._trace = trace

    def __init_subclass__(cls, **kwargs: Any) -> None:
        raise TypeError("ScopeGuard cannot be subclassed")

    @property
    def guard_id(self) -> str:
        return self._guard_id

    @property
    def exit_type(self) -> ExitType:
        return self._exit_type

    @property
    def action(self) -> Optional[Action]:
        """The bound action; None once it has been relocated to another guard."""
        return self._action

    @property
    def active(self) -> bool:
        return self._active and not self._destroyed

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def state(self) -> GuardState:
        if self._destroyed:
            return GuardState.DESTROYED
        return GuardState.ACTIVE if self._active else GuardState.INACTIVE

    def dismiss(self) -> None:
        if not self._active:
            return
        self._active = False
        self._emit("guard_dismissed", message="Guard dismissed")

    def relocate(self) -> "ScopeGuard":
        """
        Move the action (and the right to invoke it) into a new guard.

        The new guard starts inactive and the flags are swapped in one step, so
        a failure while building it leaves ownership with this guard.
        """
        if self._destroyed:
            raise GuardStateError(
                code="guard.destroyed",
                message="Cannot relocate a guard after its scope has exited",
                data={"guard_id": self._guard_id},
            )
        # A guard that was already relocated from hands over None, inactive.
        dest = ScopeGuard(
            self._action,  # type: ignore[arg-type]
            self._exit_type,
            error_signal=self._error_signal,
            trace=self._trace,
            active=False,
            _token=_FACTORY_TOKEN,
        )
        dest._active, self._active = self._active, False
        self._action = None
        self._emit(
            "guard_relocated",
            message="Guard relocated",
            data={"to_guard_id": dest._guard_id, "active": dest._active},
        )
        return dest

    def close(self, exc: Any = _UNSET) -> None:
        """
        End this guard's life outside a `with` block.

        `exc` is the exception propagating past the guard, or None when the
        scope ends normally (the same information `__exit__` receives). When it
        is omitted the guard falls back to its runtime error signal, which
        cannot tell an exception being handled from one propagating: inside an
        `except` block that has caught the error, pass None explicitly.
        """
        if exc is _UNSET:
            error_propagating = self._error_signal() if self._error_signal is not None else False
        else:
            error_propagating = exc is not None
        self._end_of_life(error_propagating)

    def __enter__(self) -> "ScopeGuard":
        if self._destroyed:
            raise GuardStateError(
                code="guard.destroyed",
                message="Cannot enter a guard after its scope has exited",
                data={"guard_id": self._guard_id},
            )
        if self._entered:
            raise GuardStateError(
                code="guard.already_entered",
                message="Guard is already bound to a scope",
                data={"guard_id": self._guard_id},
            )
        self._entered = True
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> bool:
        self._end_of_life(exc_type is not None)
        return False

    def _end_of_life(self, error_propagating: bool) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        if not self._active:
            return
        self._active = False
        # Only a relocation source holds None, and it is never active.
        action = cast(Action, self._action)
        self._action = None

        if not should_run(self._exit_type, error_propagating):
            self._emit(
                "guard_skipped",
                message="Exit policy did not select this exit",
                data={"error_propagating": error_propagating},
            )
            return

        try:
            action()
        except BaseException as e:  # noqa: BLE001
            try:
                self._emit(
                    "action_failed",
                    message="Action raised during scope exit",
                    data={"error": repr(e)},
                    durable=True,
                )
            finally:
                terminate(self._guard_id, e)
        else:
            self._emit("guard_fired", message="Action invoked", data={"error_propagating": error_propagating})

    def _emit(
        self,
        event_type: str,
        *,
        message: str,
        data: Optional[dict[str, Any]] = None,
        durable: bool = False,
    ) -> None:
        if self._trace is None:
            return
        try:
            self._trace.emit(
                event_type,
                guard_id=self._guard_id,
                exit_type=self._exit_type.value,
                message=message,
                data=data,
                durable=durable,
            )
        except OSError as e:
            # Guard transitions cannot fail; a broken trace sink only loses events.
            try:
                warnings.warn(f"scopeguard trace write failed: {e!r}", RuntimeWarning, stacklevel=3)
            except Warning:
                # Warnings turned into errors still must not escape a transition.
                pass

    def __copy__(self) -> NoReturn:
        raise TypeError("ScopeGuard cannot be copied; use relocate()")

    def __deepcopy__(self, memo: Any) -> NoReturn:
        raise TypeError("ScopeGuard cannot be copied; use relocate()")

    def __reduce_ex__(self, protocol: Any) -> NoReturn:
        raise TypeError("ScopeGuard cannot be pickled")

    def __del__(self) -> None:
        if getattr(self, "_active", False) and not getattr(self, "_destroyed", True):
            warnings.warn(
                f"scope guard {self._guard_id} was garbage collected while active; its action did not run",
                ResourceWarning,
                source=self,
            )

    def __repr__(self) -> str:
        return "<ScopeGuard {} state={} exit_type={} action={!r}>".format(
            self._guard_id, self.state.value, self._exit_type.value, self._action
        )
