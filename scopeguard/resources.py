from __future__ import annotations

from pathlib import Path


def contracts_dir() -> Path:
    """
    Directory holding the shipped JSON Schemas (installed as package data next
    to this module).
    """
    return Path(__file__).resolve().parent / "contracts"
