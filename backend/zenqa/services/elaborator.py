"""
Step elaboration: turns short test-case names into ordered, granular steps.

A name is first looked up in the previously stored test-case rows (reuse
path); otherwise the first matching bucket of catalog/step_buckets.json
provides its steps. Each step is then enriched with a type, an automation
complexity and a duration estimate.
"""

import logging
import math
from pathlib import Path
from typing import NamedTuple, Optional

from pydantic import BaseModel, Field

from zenqa.models.test_case_models import Category, Level, StepRow, StepType, TestCase
from zenqa.store.repository import parse_level, split_steps
from zenqa.utils.id_generator import generate_step_id, generate_test_case_id

logger = logging.getLogger(__name__)

STEP_CATALOG_PATH = Path(__file__).parent.parent / "catalog" / "step_buckets.json"
GENERATED_ID_PREFIX = "TC_STEP"
REUSE_KEY_LENGTH = 20


class StepVariant(BaseModel):
    match: list[str]
    steps: list[str]
    expected_result: Optional[str] = None
    sample_data: Optional[str] = None


class StepBucket(BaseModel):
    name: str
    match: list[str] = Field(default_factory=list)
    category: Category = Category.GENERAL
    priority: Level = Level.MEDIUM
    preconditions: Optional[str] = None
    sample_data: Optional[str] = None
    steps: list[str] = Field(default_factory=list)
    expected_result: Optional[str] = None
    variants: list[StepVariant] = Field(default_factory=list)


class StoryOverride(BaseModel):
    name: str
    match: list[str]
    steps: list[str] = Field(..., min_length=1)
    category: Optional[Category] = None
    sample_data: Optional[str] = None


class StepCatalog(BaseModel):
    buckets: list[StepBucket]
    default: StepBucket
    story_overrides: list[StoryOverride] = Field(default_factory=list)


def load_step_catalog(path: Path = STEP_CATALOG_PATH) -> StepCatalog:
    return StepCatalog.model_validate_json(path.read_bytes())


def _mentions(text: str, keywords) -> bool:
    return any(k in text for k in keywords)


# Step enrichment. First matching row wins; no match means Action.
STEP_TYPE_RULES: tuple[tuple[StepType, tuple[str, ...]], ...] = (
    (StepType.NAVIGATION, ("navigate", "open", "go to")),
    (StepType.VERIFICATION, ("verify", "check", "assert", "confirm", "validate", "ensure")),
    (StepType.DATA_ENTRY, ("enter", "fill", "input", "type", "provide")),
    (StepType.USER_INTERACTION, ("click", "select", "choose", "press", "tap")),
    (StepType.WAIT, ("wait", "load", "delay")),
    (StepType.AUTHENTICATION, ("login", "authenticate", "sign in")),
    (StepType.CLEANUP, ("logout", "sign out", "exit")),
)

BASE_SECONDS = {
    StepType.NAVIGATION: 3,
    StepType.USER_INTERACTION: 2,
    StepType.DATA_ENTRY: 5,
    StepType.VERIFICATION: 4,
    StepType.WAIT: 8,
    StepType.AUTHENTICATION: 6,
    StepType.CLEANUP: 3,
    StepType.ACTION: 4,
}
DEFAULT_BASE_SECONDS = 4

COMPLEXITY_MULTIPLIER = {Level.LOW: 1.0, Level.MEDIUM: 1.5, Level.HIGH: 2.0}


class StepEstimate(NamedTuple):
    step_type: StepType
    complexity: Level
    duration_seconds: int


def classify_step(step: str) -> StepType:
    step_lower = step.lower()
    for step_type, keywords in STEP_TYPE_RULES:
        if _mentions(step_lower, keywords):
            return step_type
    return StepType.ACTION


def estimate_complexity(step: str, step_type: StepType) -> Level:
    step_lower = step.lower()
    if step_type in (StepType.NAVIGATION, StepType.USER_INTERACTION):
        return Level.LOW
    if step_type in (StepType.DATA_ENTRY, StepType.AUTHENTICATION):
        return Level.MEDIUM
    if step_type == StepType.VERIFICATION and _mentions(step_lower, ("complex", "multiple")):
        return Level.HIGH
    if _mentions(step_lower, ("upload", "download", "api")):
        return Level.HIGH
    return Level.MEDIUM


def estimate_duration(step_type: StepType, complexity: Level) -> int:
    seconds = BASE_SECONDS.get(step_type, DEFAULT_BASE_SECONDS) * COMPLEXITY_MULTIPLIER[complexity]
    # half-up, so 4.5 becomes 5
    return int(math.floor(seconds + 0.5))


def enrich_step(step: str) -> StepEstimate:
    step_type = classify_step(step)
    complexity = estimate_complexity(step, step_type)
    return StepEstimate(step_type, complexity, estimate_duration(step_type, complexity))


def placeholder_result(step_number: int) -> str:
    return f"Step {step_number} should be completed successfully"


def build_step_rows(cases: list[TestCase]) -> list[StepRow]:
    """One row per step; only a test case's last step carries its expected result."""
    rows = []
    for tc in cases:
        last = len(tc.steps)
        for number, step in enumerate(tc.steps, start=1):
            estimate = enrich_step(step)
            rows.append(StepRow(
                step_id=generate_step_id(tc.test_case_id, number),
                test_case_id=tc.test_case_id,
                test_case_name=tc.name,
                step_number=number,
                description=step,
                step_type=estimate.step_type,
                complexity=estimate.complexity,
                estimated_duration_seconds=estimate.duration_seconds,
                expected_result=tc.expected_result if number == last else placeholder_result(number),
            ))
    return rows


class StepElaborator:

    def __init__(self, catalog: Optional[StepCatalog] = None):
        self.catalog = catalog or load_step_catalog()

    def elaborate(
        self,
        names: list[str],
        story: str,
        stored_rows: Optional[list[dict]] = None,
    ) -> list[TestCase]:
        stored_rows = stored_rows or []
        cases: list[TestCase] = []
        seen_ids: set[str] = set()

        for index, name in enumerate(names, start=1):
            row = self.find_stored(name, stored_rows)
            if row is not None:
                logger.info("Reusing stored steps for %r", name)
                tc = self.from_stored(row, name, story, index)
            else:
                tc = self.generate(name, story, index)

            tc.test_case_id = self._unique_id(tc.test_case_id, seen_ids)
            cases.append(tc)

        return cases

    @staticmethod
    def find_stored(name: str, stored_rows: list[dict]) -> Optional[dict]:
        key = name.lower()[:REUSE_KEY_LENGTH]
        for row in stored_rows:
            stored_name = row.get("Test Case Name", "")
            if stored_name and key in stored_name.lower():
                return row
        return None

    def from_stored(self, row: dict, name: str, story: str, index: int) -> TestCase:
        steps = split_steps(row.get("Test Steps", ""))
        if not steps:
            steps = self.generate(name, story, index).steps
        return TestCase(
            test_case_id=row.get("Test Case ID") or generate_test_case_id(GENERATED_ID_PREFIX, index),
            name=row.get("Test Case Name") or name,
            category=Category.parse(row.get("Category")),
            priority=parse_level(row.get("Priority")),
            preconditions=row.get("Preconditions") or self.catalog.default.preconditions or "",
            steps=steps,
            expected_result=row.get("Expected Results") or self._default_expected(name),
            sample_data=row.get("Test Data") or self.catalog.default.sample_data or "",
        )

    def match_bucket(self, name: str) -> StepBucket:
        name_lower = name.lower()
        for bucket in self.catalog.buckets:
            if _mentions(name_lower, bucket.match):
                return bucket
        return self.catalog.default

    def generate(self, name: str, story: str, index: int) -> TestCase:
        default = self.catalog.default
        bucket = self.match_bucket(name)
        name_lower = name.lower()

        category = bucket.category
        steps = list(bucket.steps)
        expected = bucket.expected_result
        sample_data = bucket.sample_data or default.sample_data

        if bucket.variants:
            for variant in bucket.variants:
                if _mentions(name_lower, variant.match):
                    steps = list(variant.steps)
                    expected = variant.expected_result or expected
                    sample_data = variant.sample_data or sample_data
                    break

        if bucket is default:
            override = self._story_override(story)
            if override is not None:
                steps = list(override.steps)
                category = override.category or category
                sample_data = override.sample_data or sample_data

        if not steps:
            # a bucket whose variants all missed still gets a runnable skeleton
            logger.debug("Bucket %s had no steps for %r, using generic", bucket.name, name)
            override = self._story_override(story)
            steps = list(override.steps if override is not None else default.steps)

        return TestCase(
            test_case_id=generate_test_case_id(GENERATED_ID_PREFIX, index),
            name=name,
            category=category,
            priority=bucket.priority,
            preconditions=bucket.preconditions or default.preconditions or "",
            steps=steps,
            expected_result=expected or self._default_expected(name),
            sample_data=sample_data or "",
        )

    def _story_override(self, story: str) -> Optional[StoryOverride]:
        story_lower = (story or "").lower()
        for override in self.catalog.story_overrides:
            if _mentions(story_lower, override.match):
                return override
        return None

    @staticmethod
    def _default_expected(name: str) -> str:
        return f'Test case "{name}" should be completed successfully'

    @staticmethod
    def _unique_id(candidate: str, seen: set[str]) -> str:
        unique = candidate
        n = 2
        while unique in seen:
            unique = f"{candidate}_{n}"
            n += 1
        seen.add(unique)
        return unique
