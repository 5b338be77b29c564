from datetime import datetime
from pathlib import Path
from typing import Optional

from zenqa.models.test_case_models import (
    Category, Level, StepRow, TestCase, UserStoryRecord,
)
from zenqa.store.csv_store import MAX_STEP_COLUMNS, RecordKind, RecordStore, Row
from zenqa.utils.id_generator import iso_timestamp

STEP_DELIMITER = " | "


def join_steps(steps: list[str]) -> str:
    return STEP_DELIMITER.join(steps)


def split_steps(value: str) -> list[str]:
    return [s for s in value.split(STEP_DELIMITER) if s.strip()] if value else []


def story_reference(story: str, limit: int = 100) -> str:
    return story[:limit] + ("..." if len(story) > limit else "")


def parse_level(value: Optional[str]) -> Level:
    try:
        return Level((value or "").strip().capitalize())
    except ValueError:
        return Level.MEDIUM


def _same_story(existing: list[Row], record: Row) -> bool:
    text = record["User Story"].strip().lower()
    return any(
        row.get("User Story", "").strip().lower() == text for row in existing
    )


class UserStoryRepository:

    def __init__(self, store: RecordStore):
        self.store = store

    @staticmethod
    def to_row(record: UserStoryRecord) -> Row:
        return {
            "ID": str(record.id),
            "Timestamp": iso_timestamp(record.created_at),
            "User Story": record.text,
            "Category": record.category.value,
            "Priority": record.priority.value,
            "Complexity": record.complexity.value,
            "Source": record.source or "",
        }

    @staticmethod
    def from_row(row: Row) -> UserStoryRecord:
        return UserStoryRecord(
            id=int(row.get("ID") or 0),
            created_at=row.get("Timestamp") or datetime.fromtimestamp(0).isoformat(),
            text=row.get("User Story", ""),
            category=Category.parse(row.get("Category")),
            priority=parse_level(row.get("Priority")),
            complexity=parse_level(row.get("Complexity")),
            source=row.get("Source") or None,
        )

    def save(
        self, record: UserStoryRecord, snapshot_kind: RecordKind = RecordKind.USER_STORY
    ) -> tuple[bool, Path, Path]:
        """
        Adds the story to the main table unless the same text is already there,
        then writes the per-request snapshot either way.
        Returns (duplicate, main_path, snapshot_path).
        """
        row = self.to_row(record)
        result = self.store.append(RecordKind.USER_STORY, [row], skip_if=_same_story)
        snapshot_path = self.store.snapshot(snapshot_kind, [row])
        return bool(result.skipped), result.path, snapshot_path

    def list_all(self, category: Optional[str] = None) -> list[UserStoryRecord]:
        """Newest first, optionally filtered by category (case-insensitive)."""
        rows = self.store.read_all(RecordKind.USER_STORY)
        if category:
            rows = [
                r for r in rows
                if r.get("Category", "").lower() == category.strip().lower()
            ]
        rows.sort(key=lambda r: r.get("Timestamp", ""), reverse=True)
        return [self.from_row(r) for r in rows]

    def latest_text(self) -> Optional[str]:
        """Text of the last stored story, the one a code-generation run describes."""
        for row in reversed(self.store.read_all(RecordKind.USER_STORY)):
            text = row.get("User Story", "").strip()
            if text:
                return text
        return None


class TestCaseRepository:
    __test__ = False

    def __init__(self, store: RecordStore, story_ref_chars: int = 100):
        self.store = store
        self.story_ref_chars = story_ref_chars

    @staticmethod
    def to_row(tc: TestCase) -> Row:
        return {
            "Test Case ID": tc.test_case_id,
            "Test Case Name": tc.name,
            "Category": tc.category.value,
            "Priority": tc.priority.value,
            "Preconditions": tc.preconditions,
            "Test Steps": join_steps(tc.steps),
            "Expected Results": tc.expected_result,
            "Test Data": tc.sample_data,
            "User Story Reference": "" if tc.user_story_ref is None else str(tc.user_story_ref),
        }

    def save_generated(self, cases: list[TestCase]) -> Path:
        rows = [self.to_row(tc) for tc in cases]
        path = self.store.snapshot(RecordKind.TEST_CASE, rows)
        self.store.append(RecordKind.TEST_CASE, rows)
        return path

    def save_uploaded(self, names: list[str], file_name: str, uploaded_at: datetime) -> Path:
        stamp = iso_timestamp(uploaded_at)
        rows = [
            {
                "Test Case ID": f"TC_UPLOAD_{i:03d}",
                "Test Case Name": name,
                "Category": Category.GENERAL.value,
                "Priority": Level.MEDIUM.value,
                "Preconditions": "Application is accessible and ready for testing",
                "Test Steps": "Steps to be defined based on test case requirements",
                "Expected Results": f'Test case "{name}" should be completed successfully',
                "Test Data": "Test data as per requirements",
                "Source": f"Uploaded from {file_name}",
                "Upload Timestamp": stamp,
            }
            for i, name in enumerate(names, start=1)
        ]
        return self.store.snapshot(RecordKind.TEST_CASE_UPLOAD, rows)

    def latest_rows(self) -> list[Row]:
        """Rows of the newest generated or uploaded test-case snapshot."""
        _, rows = self.store.latest_snapshot(RecordKind.TEST_CASE, RecordKind.TEST_CASE_UPLOAD)
        return rows

    def save_detailed(
        self, cases: list[TestCase], story: str, generated_at: datetime
    ) -> Path:
        ref = story_reference(story, self.story_ref_chars)
        stamp = iso_timestamp(generated_at)
        rows = []
        for tc in cases:
            row = self.to_row(tc)
            del row["Test Steps"]
            for i in range(1, MAX_STEP_COLUMNS + 1):
                row[f"Step {i}"] = tc.steps[i - 1] if i <= len(tc.steps) else ""
            row["All Test Steps (Combined)"] = join_steps(tc.steps)
            row["User Story Reference"] = ref
            row["Generated Timestamp"] = stamp
            rows.append(row)
        path = self.store.snapshot(RecordKind.DETAILED_STEPS, rows)
        self.store.append(RecordKind.DETAILED_STEPS, rows)
        return path

    def save_step_rows(
        self,
        cases: list[TestCase],
        step_rows: list[StepRow],
        story: str,
        generated_at: datetime,
    ) -> Path:
        by_id = {tc.test_case_id: tc for tc in cases}
        ref = story_reference(story, self.story_ref_chars)
        stamp = iso_timestamp(generated_at)
        rows = []
        for sr in step_rows:
            tc = by_id[sr.test_case_id]
            rows.append({
                "Step ID": sr.step_id,
                "Test Case ID": sr.test_case_id,
                "Test Case Name": sr.test_case_name,
                "Step Number": str(sr.step_number),
                "Step Description": sr.description,
                "Step Type": sr.step_type.value,
                "Category": tc.category.value,
                "Priority": tc.priority.value,
                "Preconditions": tc.preconditions,
                "Expected Results": sr.expected_result,
                "Test Data": tc.sample_data,
                "User Story Reference": ref,
                "Automation Complexity": sr.complexity.value,
                "Estimated Duration (seconds)": str(sr.estimated_duration_seconds),
                "Generated Timestamp": stamp,
            })
        path = self.store.snapshot(RecordKind.STEP_ROW, rows)
        self.store.append(RecordKind.STEP_ROW, rows)
        return path

    def latest_detailed(self) -> tuple[Optional[Path], list[Row]]:
        return self.store.latest_snapshot(RecordKind.DETAILED_STEPS)
