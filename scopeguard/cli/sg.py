from __future__ import annotations

import argparse
import importlib
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

from scopeguard.config import load_context
from scopeguard.contract_store import shipped_contracts
from scopeguard.core.callback_traits import check_callback
from scopeguard.core.errors import ScopeGuardError, ValidationError
from scopeguard.trace.replay import Replay


def _import_object(spec: str) -> Any:
    """
    Import by "module:attr" spec. Dotted attrs (module:Class.method) are followed.
    """
    if ":" not in spec:
        raise ValidationError(code="check.spec_invalid", message="action spec must be 'module:object'")
    mod_name, attr = spec.split(":", 1)
    if not mod_name or not attr:
        raise ValidationError(code="check.spec_invalid", message="action spec must be 'module:object'")
    try:
        obj: Any = importlib.import_module(mod_name)
    except ImportError as e:
        raise ValidationError(code="check.not_found", message="Failed to import module", data={"module": mod_name}) from e
    for part in attr.split("."):
        if not hasattr(obj, part):
            raise ValidationError(
                code="check.not_found",
                message="Object not found in module",
                data={"module": mod_name, "attr": attr},
            )
        obj = getattr(obj, part)
    return obj


def _format_cli_error(e: Exception) -> str:
    """
    Print-friendly error formatting for CLI commands.
    - Always includes code/message (via __str__) when it's a ScopeGuardError
    - Includes structured `data` payload when present
    """
    if isinstance(e, ScopeGuardError) and isinstance(e.data, dict) and e.data:
        return str(e) + "\n" + json.dumps(e.data, ensure_ascii=False, indent=2, default=repr)
    return str(e)


def cmd_check(args: argparse.Namespace) -> int:
    obj = _import_object(args.action)
    require_nothrow = bool(args.strict) or load_context().require_nothrow
    result = check_callback(obj, require_nothrow=require_nothrow)
    if args.json:
        print(json.dumps({"action": args.action, "require_nothrow": require_nothrow, **asdict(result)}, ensure_ascii=False, indent=2))
    else:
        print("{}: {}".format(result.decision, result.summary))
        for code in result.reason_codes:
            print("  - {}".format(code))
    return 0 if result.allowed else 1


def cmd_show_trace(args: argparse.Namespace) -> int:
    path = Path(args.trace)
    replay = Replay(path)
    if args.guard_id:
        events = replay.for_guard(args.guard_id, event_type=args.event_type)
    else:
        events = list(replay.iter_events(event_type=args.event_type))

    if args.tail is not None and args.tail >= 0:
        events = events[-args.tail :] if args.tail else []

    if args.pretty:
        for e in events:
            print(json.dumps(e, ensure_ascii=False, indent=2))
    else:
        for e in events:
            print(json.dumps(e, ensure_ascii=False))
    return 0


def cmd_show_config(args: argparse.Namespace) -> int:
    ctx = load_context(Path(args.config) if args.config else None)
    out = {
        "require_nothrow": ctx.require_nothrow,
        "trace_path": str(ctx.trace_path) if ctx.trace_path is not None else None,
        "run_id": ctx.run_id,
    }
    print(json.dumps(out, ensure_ascii=False, indent=2))
    return 0


def cmd_check_contracts(_args: argparse.Namespace) -> int:
    store = shipped_contracts()
    schema_errors = store.check_schemas()
    if schema_errors:
        print("Schema validation failed:")
        for name, err in schema_errors:
            print("- {}: {}".format(name, err))
        return 1
    for name in store.list_schema_names():
        print("OK: {}".format(name))
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="scopeguard", description="Scope-exit guard tooling")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_check = sub.add_parser("check", help="Check whether an object is a valid scope guard action")
    p_check.add_argument("action", help="Action spec 'module:object' (e.g. mypkg.cleanup:release)")
    p_check.add_argument("--strict", action="store_true", help="Require the action to be declared @nothrow")
    p_check.add_argument("--json", action="store_true", help="Output JSON")
    p_check.set_defaults(func=cmd_check)

    p_show_trace = sub.add_parser("show-trace", help="Show guard trace events from a JSONL file")
    p_show_trace.add_argument("--trace", required=True, help="Trace path (jsonl)")
    p_show_trace.add_argument("--event-type", help="Filter by event_type")
    p_show_trace.add_argument("--guard-id", help="Filter by guard_id")
    p_show_trace.add_argument("--tail", type=int, help="Show only last N events")
    p_show_trace.add_argument("--pretty", action="store_true", help="Pretty-print each event as JSON")
    p_show_trace.set_defaults(func=cmd_show_trace)

    p_show_config = sub.add_parser("show-config", help="Print the effective guard configuration")
    p_show_config.add_argument("--config", help="YAML settings file (default: $SCOPEGUARD_CONFIG)")
    p_show_config.set_defaults(func=cmd_show_config)

    p_contracts = sub.add_parser("check-contracts", help="Validate the shipped JSON Schemas")
    p_contracts.set_defaults(func=cmd_check_contracts)

    ns = parser.parse_args(argv)
    try:
        return int(ns.func(ns))
    except ScopeGuardError as e:
        print(_format_cli_error(e), file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
