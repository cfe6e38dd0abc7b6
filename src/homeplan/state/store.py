from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

AFFORD_INPUTS_KEY = "calculator.affordInputs"
REFI_INPUTS_KEY = "calculator.refiInputs"
SETTINGS_KEY = "calculator.settings"
RATE_CACHE_KEY = "calculator.rateCache.v2"
SCENARIO_STORAGE_KEY = "calculator.savedScenarios.v1"

_SAFE_KEY = re.compile(r"[^A-Za-z0-9._-]")


class LocalStore:
    """
    Key/value persistence: one JSON document per key under ``root``.

    Reads are forgiving (missing or corrupt files read as None). Writes are
    skipped when the serialized value is unchanged, so callers can save on
    every recompute without rewriting files.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        return self.root / f"{_SAFE_KEY.sub('_', key)}.json"

    def get(self, key: str) -> Any | None:
        p = self._path(key)
        try:
            if not p.exists():
                return None
            return json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.debug("Ignoring unreadable store entry %s: %s", key, e)
            return None

    def set(self, key: str, value: Any) -> bool:
        """Returns True when the file was (re)written."""
        text = json.dumps(value, ensure_ascii=False, indent=2, sort_keys=True)
        p = self._path(key)
        try:
            if p.exists() and p.read_text(encoding="utf-8") == text:
                return False
        except (OSError, ValueError):
            pass
        p.parent.mkdir(parents=True, exist_ok=True)
        tmp = p.with_suffix(".json.tmp")
        tmp.write_text(text, encoding="utf-8")
        tmp.replace(p)
        return True

    def remove(self, key: str) -> None:
        p = self._path(key)
        if p.exists():
            p.unlink()
