from .core import (
    Action,
    CallbackCheck,
    ConfigError,
    ExitType,
    GuardContext,
    GuardState,
    GuardStateError,
    InvalidAction,
    ScopeGuard,
    ScopeGuardError,
    UnsupportedExitType,
    check_callback,
    is_proper_callback,
    make_scope_guard,
    nothrow,
    should_run,
    supported_exit_types,
)

__version__ = "0.1.0"

__all__ = [
  "Action",
  "CallbackCheck",
  "ConfigError",
  "ExitType",
  "GuardContext",
  "GuardState",
  "GuardStateError",
  "InvalidAction",
  "ScopeGuard",
  "ScopeGuardError",
  "UnsupportedExitType",
  "check_callback",
  "is_proper_callback",
  "make_scope_guard",
  "nothrow",
  "should_run",
  "supported_exit_types",
]
