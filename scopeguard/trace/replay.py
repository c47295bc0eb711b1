from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, Optional


class Replay:
    """
    Minimal JSONL replay reader.
    """

    def __init__(self, path: Path):
        self._path = path

    def iter_events(self, event_type: Optional[str] = None) -> Iterable[Dict[str, Any]]:
        if not self._path.exists():
            return
        with self._path.open("r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                event = json.loads(line)
                if event_type is not None and event.get("event_type") != event_type:
                    continue
                yield event

    def for_guard(self, guard_id: str, event_type: Optional[str] = None) -> list[Dict[str, Any]]:
        return [e for e in self.iter_events(event_type=event_type) if e.get("guard_id") == guard_id]
