"""One JSON file, loaded into memory for the length of a unit of work."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path


class JsonTable:
    """In-memory copy of one JSON file holding a list of records."""

    def __init__(self, file_path: Path) -> None:
        self.file_path = file_path
        self.records: list[dict] = []
        self.dirty = False

    def load(self) -> None:
        self._ensure_file()
        self.records = json.loads(self.file_path.read_text(encoding="utf-8"))
        self.dirty = False

    def stage(self) -> Path | None:
        """Write pending changes to a fresh temp file; return it (None if clean).

        The temp file sits next to the table so ``os.replace`` stays on one
        filesystem.  It is removed again if writing fails.
        """
        if not self.dirty:
            return None
        content = json.dumps(self.records, indent=2) + "\n"
        fd, tmp_path = tempfile.mkstemp(
            dir=self.file_path.parent,
            prefix=f".{self.file_path.stem}_",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
        except BaseException:
            os.unlink(tmp_path)
            raise
        return Path(tmp_path)

    def discard(self) -> None:
        self.records = []
        self.dirty = False

    def _ensure_file(self) -> None:
        if not self.file_path.exists():
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            self.file_path.write_text("[]", encoding="utf-8")


class JsonSequences:
    """Named id counters stored in their own table.

    A counter only moves forward, so an id handed out once is never handed
    out again, even after the record that held it is deleted or its unit
    of work is rolled back and the table still holds a higher id.
    """

    def __init__(self, table: JsonTable) -> None:
        self._table = table

    def next_value(self, name: str, floor: int = 0) -> int:
        """Advance counter ``name`` past both its last value and ``floor``."""
        for raw in self._table.records:
            if raw["name"] == name:
                break
        else:
            raw = {"name": name, "value": 0}
            self._table.records.append(raw)
        raw["value"] = max(raw["value"], floor) + 1
        self._table.dirty = True
        return raw["value"]
