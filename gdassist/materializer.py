"""Writes entries to storage and reports what happened."""

from __future__ import annotations

from .logging import get_logger
from .models import MaterializationReport, WriteOutcome
from .paths import base_dir, normalize_path
from .storage import Storage


class Materializer:
    """Creates parent directories and writes full file contents."""

    def __init__(self, storage: Storage) -> None:
        self.storage = storage
        self.logger = get_logger("materializer")

    def write(self, path: str, content: str) -> MaterializationReport:
        """Write *content* to *path*; failures become an ERROR report for that path only."""
        path = normalize_path(path)
        try:
            existed = self.storage.exists(path)
            self.storage.make_dirs(base_dir(path))
            self.storage.write(path, content)
        except OSError as exc:
            self.logger.warning("Failed to write %s: %s", path, exc)
            return MaterializationReport(path=path, outcome=WriteOutcome.ERROR, message=str(exc))

        outcome = WriteOutcome.UPDATED if existed else WriteOutcome.CREATED
        self.logger.info("%s %s", outcome.value.capitalize(), path)
        return MaterializationReport(path=path, outcome=outcome)


__all__ = ["Materializer"]
