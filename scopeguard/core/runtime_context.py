from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class GuardContext:
    """
    Runtime configuration that influences how guards are validated and traced.

    Hard rules:
    - require_nothrow only adds checks; it never relaxes the action contract.
    - tracing is off unless trace_path is set.
    """

    require_nothrow: bool = False
    trace_path: Optional[Path] = None
    run_id: str = "scopeguard"
