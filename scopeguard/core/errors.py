from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ScopeGuardError(Exception):
    code: str
    message: str
    data: dict[str, Any] | None = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class InvalidAction(ScopeGuardError, TypeError):
    pass


class UnsupportedExitType(ScopeGuardError, ValueError):
    pass


class GuardStateError(ScopeGuardError):
    pass


class ConfigError(ScopeGuardError):
    pass


class ValidationError(ScopeGuardError):
    pass
