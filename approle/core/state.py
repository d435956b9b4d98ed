"""JSON state store used by the CLI between invocations."""
from __future__ import annotations
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

STATE_VERSION = 1


class StateError(Exception):
    """State file is unreadable or has an unexpected layout."""
    pass


class StateStore:
    """Named resource states persisted as a single JSON document.

    Layout:
        {"version": 1, "resources": {"<name>": {"type": "...", "state": {...}}}}
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {"version": STATE_VERSION, "resources": {}}
        try:
            document = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            raise StateError(f"Could not read state file {self.path}: {e}") from e
        if not isinstance(document, dict) or not isinstance(document.get("resources", {}), dict):
            raise StateError(f"State file {self.path} has an unexpected layout")
        if document.get("version", STATE_VERSION) != STATE_VERSION:
            raise StateError(f"Unsupported state version {document.get('version')!r} in {self.path}")
        document.setdefault("version", STATE_VERSION)
        document.setdefault("resources", {})
        return document

    def _save(self, document: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.parent.chmod(0o700)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(document, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def get(self, name: str) -> Optional[Dict[str, Any]]:
        """Return ``{"type": ..., "state": {...}}`` for ``name`` or None."""
        return self._load()["resources"].get(name)

    def put(self, name: str, type_name: str, state: Dict[str, Any]) -> None:
        document = self._load()
        document["resources"][name] = {"type": type_name, "state": state}
        self._save(document)

    def remove(self, name: str) -> bool:
        document = self._load()
        if name not in document["resources"]:
            return False
        del document["resources"][name]
        self._save(document)
        return True

    def names(self) -> list[str]:
        return sorted(self._load()["resources"])
