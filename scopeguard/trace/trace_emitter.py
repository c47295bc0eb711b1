from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from .trace_store_jsonl import TraceStoreJSONL


class TraceEmitter:
    def __init__(self, store: TraceStoreJSONL, run_id: str):
        self._store = store
        self._run_id = run_id

    def emit(
        self,
        event_type: str,
        *,
        guard_id: str | None = None,
        exit_type: str | None = None,
        message: str | None = None,
        data: dict[str, Any] | None = None,
        durable: bool = False,
    ) -> None:
        event: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "run_id": self._run_id,
            "event_type": event_type,
        }
        if guard_id is not None:
            event["guard_id"] = guard_id
        if exit_type is not None:
            event["exit_type"] = exit_type
        if message is not None:
            event["message"] = message
        if data is not None:
            event["data"] = data

        self._store.append(event, durable=durable)
