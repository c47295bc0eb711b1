from .errors import ConfigError, GuardStateError, InvalidAction, ScopeGuardError, UnsupportedExitType, ValidationError
from .callback_traits import (
    Action,
    CallbackCheck,
    check_callback,
    is_noarg_callable,
    is_nothrow_destructible,
    is_nothrow_invocable_if_required,
    is_proper_callback,
    nothrow,
    require_proper_callback,
    returns_void,
)
from .exit_policy import ExitType, error_in_flight, should_run, supported_exit_types
from .runtime_context import GuardContext
from .guard import GuardState, ScopeGuard
from .factory import make_scope_guard

__all__ = [
  "ScopeGuardError",
  "InvalidAction",
  "UnsupportedExitType",
  "GuardStateError",
  "ConfigError",
  "ValidationError",
  "Action",
  "CallbackCheck",
  "check_callback",
  "is_noarg_callable",
  "returns_void",
  "is_nothrow_invocable_if_required",
  "is_nothrow_destructible",
  "is_proper_callback",
  "require_proper_callback",
  "nothrow",
  "ExitType",
  "error_in_flight",
  "should_run",
  "supported_exit_types",
  "GuardContext",
  "GuardState",
  "ScopeGuard",
  "make_scope_guard",
]
