"""
File-system wallet.

Stores one JSON file per enrolled identity (<label>.id) holding the access
token issued at enrollment.
"""

import json
import os
from pathlib import Path
from typing import Optional


class Wallet:

    def __init__(self, path):
        self.path = Path(path)

    def _file(self, label: str) -> Path:
        return self.path / f"{label}.id"

    def get(self, label: str) -> Optional[dict]:
        file = self._file(label)
        if not file.exists():
            return None
        with open(file, "r", encoding="utf-8") as fh:
            return json.load(fh)

    def put(self, label: str, identity: dict) -> None:
        self.path.mkdir(parents=True, exist_ok=True)
        file = self._file(label)
        tmp = file.with_suffix(".tmp")
        with open(tmp, "w", encoding="utf-8") as fh:
            json.dump(identity, fh, indent=2)
        os.replace(tmp, file)

    def remove(self, label: str) -> bool:
        file = self._file(label)
        if file.exists():
            file.unlink()
            return True
        return False

    def list(self) -> list[str]:
        if not self.path.exists():
            return []
        return sorted(p.stem for p in self.path.glob("*.id"))
