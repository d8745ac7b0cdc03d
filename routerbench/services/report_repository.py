# routerbench/services/report_repository.py
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from routerbench.models import PersistedReport

logger = logging.getLogger(__name__)

LATEST_NAME = "latest-browser-results.json"
HISTORY_DIR = "history"
HISTORY_PREFIX = "browser-results-"


def history_stamp(report: PersistedReport) -> str:
    """Filesystem-safe form of the report's ISO-8601 timestamp."""
    stamp = report.timestamp.isoformat()
    for char in ":.+":
        stamp = stamp.replace(char, "-")
    return stamp


class ReportRepository:
    """
    Reads and writes persisted reports under one results directory:

        <results_dir>/latest-browser-results.json       overwritten by every run
        <results_dir>/history/browser-results-<ts>.json  one per run, never overwritten
    """

    def __init__(self, results_dir: Path):
        self.results_dir = Path(results_dir)

    @property
    def latest_path(self) -> Path:
        return self.results_dir / LATEST_NAME

    @property
    def history_dir(self) -> Path:
        return self.results_dir / HISTORY_DIR

    def save(self, report: PersistedReport) -> Tuple[Path, Path]:
        payload = report.model_dump_json(by_alias=True, indent=2)

        self.history_dir.mkdir(parents=True, exist_ok=True)
        self.latest_path.write_text(payload, encoding="utf-8")
        history_path = self._write_history(history_stamp(report), payload)

        logger.info("Browser test results saved to %s and %s", self.latest_path, history_path)
        return self.latest_path, history_path

    def _write_history(self, stamp: str, payload: str) -> Path:
        suffix = 0
        while True:
            name = f"{HISTORY_PREFIX}{stamp}.json" if suffix == 0 else f"{HISTORY_PREFIX}{stamp}-{suffix}.json"
            path = self.history_dir / name
            try:
                with path.open("x", encoding="utf-8") as f:
                    f.write(payload)
                return path
            except FileExistsError:
                suffix += 1

    def load(self, path: Path) -> PersistedReport:
        return PersistedReport.model_validate_json(Path(path).read_text(encoding="utf-8"))

    def load_latest(self) -> Optional[PersistedReport]:
        if not self.latest_path.is_file():
            return None
        return self.load(self.latest_path)

    def list_history(self) -> List[Path]:
        """History files, oldest first."""
        if not self.history_dir.is_dir():
            return []
        files = [p for p in self.history_dir.glob(f"{HISTORY_PREFIX}*.json") if p.is_file()]
        return sorted(files, key=lambda p: (p.stat().st_mtime, p.name))

    def find_history(self, name: str) -> Optional[Path]:
        """Looks a history file up by bare file name; anything else is not found."""
        if Path(name).name != name or not name.startswith(HISTORY_PREFIX):
            return None
        path = self.history_dir / name
        return path if path.is_file() else None
