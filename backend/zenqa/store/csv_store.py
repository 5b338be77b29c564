"""
Record store on plain CSV files.

One main cumulative table per kind (e.g. UserStory.csv) plus one timestamped
snapshot per write operation (e.g. UserStory_2026-10-18T09-30-00-123Z.csv).
Writes to a main table are serialized by a per-table lock held across the
whole read-modify-write, and the table is swapped in with an atomic rename.
"""

import csv
import logging
import os
import re
import tempfile
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from zenqa.errors import IOFailure
from zenqa.utils.id_generator import SystemClock, file_stamp

logger = logging.getLogger(__name__)

_system_clock = SystemClock()

USER_STORY_COLUMNS = (
    "ID", "Timestamp", "User Story", "Category", "Priority", "Complexity", "Source",
)

TEST_CASE_COLUMNS = (
    "Test Case ID", "Test Case Name", "Category", "Priority", "Preconditions",
    "Test Steps", "Expected Results", "Test Data", "User Story Reference",
)

UPLOADED_TEST_CASE_COLUMNS = TEST_CASE_COLUMNS[:-1] + ("Source", "Upload Timestamp")

MAX_STEP_COLUMNS = 8

DETAILED_STEP_COLUMNS = (
    ("Test Case ID", "Test Case Name", "Category", "Priority", "Preconditions")
    + tuple(f"Step {i}" for i in range(1, MAX_STEP_COLUMNS + 1))
    + (
        "All Test Steps (Combined)", "Expected Results", "Test Data",
        "User Story Reference", "Generated Timestamp",
    )
)

STEP_ROW_COLUMNS = (
    "Step ID", "Test Case ID", "Test Case Name", "Step Number", "Step Description",
    "Step Type", "Category", "Priority", "Preconditions", "Expected Results",
    "Test Data", "User Story Reference", "Automation Complexity",
    "Estimated Duration (seconds)", "Generated Timestamp",
)

_STAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d{3}Z(?:-\d+)?$")


class RecordKind(Enum):
    """(main table name or None, snapshot prefix, columns)"""

    USER_STORY = ("UserStory", "UserStory", USER_STORY_COLUMNS)
    USER_STORY_UPLOAD = (None, "UserStory_Upload", USER_STORY_COLUMNS)
    TEST_CASE = ("TestCases", "TestCases", TEST_CASE_COLUMNS)
    TEST_CASE_UPLOAD = (None, "TestCases_Upload", UPLOADED_TEST_CASE_COLUMNS)
    DETAILED_STEPS = ("DetailedTestSteps", "DetailedTestSteps", DETAILED_STEP_COLUMNS)
    STEP_ROW = ("TestCaseStep", "TestCaseStep", STEP_ROW_COLUMNS)

    def __init__(self, table: Optional[str], prefix: str, columns: tuple):
        self.table = table
        self.prefix = prefix
        self.columns = columns


Row = dict[str, str]


@dataclass
class AppendResult:
    path: Path
    appended: list[Row] = field(default_factory=list)
    skipped: list[Row] = field(default_factory=list)


_table_locks: dict[str, threading.Lock] = {}
_registry_lock = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _registry_lock:
        lock = _table_locks.get(key)
        if lock is None:
            lock = _table_locks[key] = threading.Lock()
        return lock


class RecordStore:

    def __init__(self, data_dir, clock=None):
        self.data_dir = Path(data_dir)
        self.clock = clock or _system_clock

    def table_path(self, kind: RecordKind) -> Path:
        if kind.table is None:
            raise ValueError(f"{kind.name} has no main table")
        return self.data_dir / f"{kind.table}.csv"

    def _ensure_dir(self, stage: str):
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IOFailure(stage, "Could not create data directory", str(e)) from e

    def read_all(self, kind: RecordKind) -> list[Row]:
        """Rows of the main table in the order they were written."""
        return self._read(self.table_path(kind), stage=f"read {kind.table}")

    def append(
        self,
        kind: RecordKind,
        records: list[Row],
        skip_if: Optional[Callable[[list[Row], Row], bool]] = None,
    ) -> AppendResult:
        """
        Read-modify-write of the main table. skip_if(existing, record) drops a
        record (e.g. duplicates); it sees rows appended earlier in the same call.
        """
        stage = f"append {kind.table}"
        path = self.table_path(kind)
        self._ensure_dir(stage)
        result = AppendResult(path=path)

        with _lock_for(path):
            existing = self._read(path, stage=stage)
            header = self._header_for(kind, existing)
            for record in records:
                if skip_if is not None and skip_if(existing, record):
                    result.skipped.append(record)
                    continue
                existing.append(record)
                result.appended.append(record)

            if result.appended:
                self._rewrite(path, header, existing, stage)
                logger.info("Appended %s row(s) to %s", len(result.appended), path.name)
            else:
                logger.info("Nothing new for %s, table left untouched", path.name)

        return result

    def snapshot(self, kind: RecordKind, records: list[Row]) -> Path:
        """Write one timestamped table holding exactly these records."""
        stage = f"snapshot {kind.prefix}"
        self._ensure_dir(stage)
        stamp = file_stamp(self.clock.now())
        attempt = 0
        while True:
            suffix = stamp if attempt == 0 else f"{stamp}-{attempt}"
            path = self.data_dir / f"{kind.prefix}_{suffix}.csv"
            try:
                with open(path, "x", newline="", encoding="utf-8") as fh:
                    self._write_rows(fh, kind.columns, records)
                break
            except FileExistsError:
                attempt += 1
            except (OSError, csv.Error) as e:
                raise IOFailure(stage, "Could not write snapshot", str(e)) from e

        logger.info("Wrote %s row(s) to snapshot %s", len(records), path.name)
        return path

    def latest_snapshot(self, *kinds: RecordKind) -> tuple[Optional[Path], list[Row]]:
        """Newest snapshot across the given kinds, by the stamp in its name."""
        candidates = []
        if self.data_dir.exists():
            for kind in kinds:
                for path in self.data_dir.glob(f"{kind.prefix}_*.csv"):
                    stamp = path.stem[len(kind.prefix) + 1:]
                    if _STAMP_RE.match(stamp):
                        candidates.append((stamp, path))
        if not candidates:
            return None, []
        _, path = max(candidates)
        return path, self._read(path, stage=f"read {path.name}")

    def write_document(self, prefix: str, extension: str, content: str) -> Path:
        stage = f"write {prefix}"
        self._ensure_dir(stage)
        path = self.data_dir / f"{prefix}_{file_stamp(self.clock.now())}.{extension}"
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise IOFailure(stage, "Could not write generated document", str(e)) from e
        logger.info("Wrote %s", path.name)
        return path

    @staticmethod
    def _header_for(kind: RecordKind, existing: list[Row]) -> list[str]:
        header = list(kind.columns)
        # keep columns written by older versions of the table
        for row in existing[:1]:
            header.extend(k for k in row if k not in header)
        return header

    @staticmethod
    def _write_rows(fh, columns, records: list[Row]):
        writer = csv.DictWriter(fh, fieldnames=list(columns), restval="", extrasaction="ignore")
        writer.writeheader()
        for record in records:
            writer.writerow({k: "" if v is None else v for k, v in record.items()})

    def _rewrite(self, path: Path, header: list[str], rows: list[Row], stage: str):
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", newline="", encoding="utf-8", dir=path.parent,
                prefix=f".{path.stem}.", suffix=".tmp", delete=False,
            ) as fh:
                tmp_name = fh.name
                self._write_rows(fh, header, rows)
            os.replace(tmp_name, path)
        except (OSError, csv.Error) as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise IOFailure(stage, f"Could not rewrite {path.name}", str(e)) from e

    @staticmethod
    def _read(path: Path, stage: str) -> list[Row]:
        if not path.exists():
            return []
        try:
            with open(path, newline="", encoding="utf-8") as fh:
                return [
                    {k: v or "" for k, v in row.items() if k is not None}
                    for row in csv.DictReader(fh)
                ]
        except (OSError, csv.Error, UnicodeDecodeError) as e:
            raise IOFailure(stage, f"Could not read {path.name}", str(e)) from e


def get_store() -> RecordStore:
    from zenqa.config import get_settings
    return RecordStore(get_settings().get_data_path())
