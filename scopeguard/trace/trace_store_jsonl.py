from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any


class TraceStoreJSONL:
    """
    Append-only JSONL sink for guard lifecycle events.

    `durable=True` fsyncs the line before returning; used for the event written
    right before the process aborts.
    """

    def __init__(self, path: Path):
        self._path = path

    def append(self, event: dict[str, Any], *, durable: bool = False) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(event, ensure_ascii=False, default=repr)
        with self._path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
            if durable:
                f.flush()
                os.fsync(f.fileno())
