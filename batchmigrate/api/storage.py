"""In-memory history of migration runs served by the API."""

import threading
from typing import Dict, List, Optional

from ..models.migration import MigrationRun


class RunStorage:
    """Keeps finished runs for the lifetime of the process."""

    def __init__(self):
        self._runs: Dict[str, MigrationRun] = {}
        self._lock = threading.Lock()

    def add(self, run: MigrationRun) -> MigrationRun:
        with self._lock:
            self._runs[run.id] = run
        return run

    def get(self, run_id: str) -> Optional[MigrationRun]:
        with self._lock:
            return self._runs.get(run_id)

    def list_all(self) -> List[MigrationRun]:
        with self._lock:
            runs = list(self._runs.values())
        return sorted(runs, key=lambda run: run.created_at)

    def clear(self) -> None:
        with self._lock:
            self._runs.clear()


run_storage = RunStorage()
