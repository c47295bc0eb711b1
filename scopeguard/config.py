from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .contract_store import shipped_contracts
from .core.errors import ConfigError
from .core.runtime_context import GuardContext

ENV_CONFIG = "SCOPEGUARD_CONFIG"
ENV_REQUIRE_NOTHROW = "SCOPEGUARD_REQUIRE_NOTHROW"
ENV_TRACE_PATH = "SCOPEGUARD_TRACE_PATH"
ENV_RUN_ID = "SCOPEGUARD_RUN_ID"

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("", "0", "false", "no", "off")

_DEFAULT_CONTEXT: Optional[GuardContext] = None


def _parse_bool(name: str, raw: str) -> bool:
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ConfigError(
        code="config.invalid",
        message=f"{name} must be a boolean (1/0, true/false, yes/no, on/off)",
        data={"name": name, "value": raw},
    )


def load_settings_file(path: Path) -> Dict[str, Any]:
    """
    Read a YAML settings file and validate it against settings.schema.json.
    An empty file means "no overrides".
    """
    p = path.expanduser()
    if not p.exists():
        raise ConfigError(code="config.not_found", message=f"Config file not found: {p}", data={"path": str(p)})
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(code="config.invalid", message="Config file is not valid YAML", data={"path": str(p)}) from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(code="config.invalid", message="Config root must be a mapping", data={"path": str(p)})

    errors = shipped_contracts().validate("settings.schema.json", raw)
    if errors:
        raise ConfigError(
            code="config.invalid",
            message="Config does not validate against settings.schema.json",
            data={"path": str(p), "errors": errors},
        )
    return raw


def load_context(path: Optional[Path] = None, *, environ: Optional[Mapping[str, str]] = None) -> GuardContext:
    """
    Build a GuardContext from, in increasing precedence:
    - defaults
    - YAML file (`path`, else $SCOPEGUARD_CONFIG)
    - SCOPEGUARD_REQUIRE_NOTHROW / SCOPEGUARD_TRACE_PATH / SCOPEGUARD_RUN_ID
    """
    env = os.environ if environ is None else environ
    settings: Dict[str, Any] = {}

    if path is None and env.get(ENV_CONFIG):
        path = Path(env[ENV_CONFIG])
    if path is not None:
        settings.update(load_settings_file(path))

    if ENV_REQUIRE_NOTHROW in env:
        settings["require_nothrow"] = _parse_bool(ENV_REQUIRE_NOTHROW, env[ENV_REQUIRE_NOTHROW])
    if env.get(ENV_TRACE_PATH):
        settings["trace_path"] = env[ENV_TRACE_PATH]
    if env.get(ENV_RUN_ID):
        settings["run_id"] = env[ENV_RUN_ID]

    trace_path = settings.get("trace_path")
    return GuardContext(
        require_nothrow=bool(settings.get("require_nothrow", False)),
        trace_path=Path(trace_path).expanduser() if trace_path else None,
        run_id=str(settings.get("run_id") or "scopeguard"),
    )


def default_context() -> GuardContext:
    global _DEFAULT_CONTEXT
    if _DEFAULT_CONTEXT is None:
        _DEFAULT_CONTEXT = load_context()
    return _DEFAULT_CONTEXT


def set_default_context(ctx: GuardContext) -> None:
    global _DEFAULT_CONTEXT
    _DEFAULT_CONTEXT = ctx


def reset_default_context() -> None:
    global _DEFAULT_CONTEXT
    _DEFAULT_CONTEXT = None
