from __future__ import annotations

import sys
from enum import Enum
from typing import Callable, Optional, Tuple

ErrorSignal = Callable[[], bool]


class ExitType(str, Enum):
    ALWAYS = "always"
    ON_SUCCESS = "on_success"
    ON_FAILURE = "on_failure"


def error_in_flight() -> bool:
    """
    True while an exception is being handled in the calling thread.

    Fallback signal for ScopeGuard.close() when no exception is passed. It is
    also True inside an `except` block that has already caught the error.
    """
    return sys.exc_info()[0] is not None


DEFAULT_ERROR_SIGNAL: Optional[ErrorSignal] = error_in_flight


def supported_exit_types(error_signal: Optional[ErrorSignal] = DEFAULT_ERROR_SIGNAL) -> Tuple[ExitType, ...]:
    """
    ON_SUCCESS / ON_FAILURE need a propagating-error signal; without one only
    ALWAYS is offered.
    """
    if error_signal is None:
        return (ExitType.ALWAYS,)
    return (ExitType.ALWAYS, ExitType.ON_SUCCESS, ExitType.ON_FAILURE)


def should_run(exit_type: ExitType, error_propagating: bool) -> bool:
    if exit_type is ExitType.ALWAYS:
        return True
    if exit_type is ExitType.ON_SUCCESS:
        return not error_propagating
    if exit_type is ExitType.ON_FAILURE:
        return bool(error_propagating)
    raise ValueError(f"Unknown exit type: {exit_type!r}")
