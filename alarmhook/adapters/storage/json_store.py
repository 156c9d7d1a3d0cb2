"""JSON file storage adapter: implements AlarmStoragePort."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


class JsonAlarmStorage:
    """Keeps the whole alarm set in one JSON array file."""

    def __init__(self, path: str = "alarms.json"):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load_all(self) -> List[Dict[str, Any]]:
        if not self._path.exists():
            logger.info("No alarms file at %s, starting fresh", self._path)
            return []
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.exception("Could not read alarms file %s", self._path)
            return []
        if not isinstance(raw, list):
            logger.error("Alarms file %s does not hold a list, ignoring it", self._path)
            return []
        return [item for item in raw if isinstance(item, dict)]

    def save_all(self, records: List[Dict[str, Any]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(records, ensure_ascii=False, indent=2)
        # Atomic write
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self._path.parent), suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_path, str(self._path))
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
