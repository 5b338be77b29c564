"""
Orchestrates the story -> test cases -> steps -> automation code flow.

Each public method is one boundary operation. Validation happens before any
work; every stage persists its output before the next one runs, so a failure
part-way leaves earlier stages on disk.
"""

import csv
import io
import logging
from typing import Optional

from zenqa.config import Settings, get_settings
from zenqa.errors import PreconditionNotMet, ValidationError
from zenqa.models.request_models import (
    GenerateCodeRequest,
    GenerateStepsRequest,
    UploadRequest,
)
from zenqa.models.test_case_models import (
    GenerateCodeResponse,
    GenerateStepsResponse,
    StoryAnalysis,
    StoryListResponse,
    SubmitStoryResponse,
    UploadStoryResponse,
    UploadTestCasesResponse,
    UserStoryInfo,
    UserStoryRecord,
)
from zenqa.services.classifier import classify_story
from zenqa.services.code_generator import CodeGenerator
from zenqa.services.context_extractor import extract_context
from zenqa.services.elaborator import StepElaborator, build_step_rows
from zenqa.services.synthesizer import TestCaseSynthesizer
from zenqa.store.csv_store import RecordKind, RecordStore, get_store
from zenqa.store.repository import TestCaseRepository, UserStoryRepository
from zenqa.utils.validators import (
    check_story_length,
    validate_test_case_names,
    validate_user_story,
)

logger = logging.getLogger(__name__)

DEFAULT_STORY = "Default user story"
MIN_UPLOADED_NAME_LENGTH = 6


def _csv_rows(content: str, file_name: str) -> list[list[str]]:
    try:
        return [row for row in csv.reader(io.StringIO(content)) if row]
    except csv.Error as e:
        raise ValidationError(
            f"Could not parse {file_name} as CSV",
            str(e),
        ) from e


def _unquote(value: str) -> str:
    return value.replace('"', "").strip()


class TestAssetPipeline:
    __test__ = False

    def __init__(
        self,
        store: RecordStore,
        settings: Optional[Settings] = None,
        synthesizer: Optional[TestCaseSynthesizer] = None,
        elaborator: Optional[StepElaborator] = None,
        code_generator: Optional[CodeGenerator] = None,
    ):
        self.store = store
        self.clock = store.clock
        self.settings = settings or get_settings()
        self.stories = UserStoryRepository(store)
        self.test_cases = TestCaseRepository(store, self.settings.story_ref_chars)
        self.synthesizer = synthesizer or TestCaseSynthesizer()
        self.elaborator = elaborator or StepElaborator()
        self.code_generator = code_generator or CodeGenerator()

    def _new_record(
        self, story: str, analysis: StoryAnalysis, source: Optional[str] = None
    ) -> UserStoryRecord:
        return UserStoryRecord(
            id=self.clock.next_id(),
            created_at=self.clock.now(),
            text=story,
            category=analysis.category,
            priority=analysis.priority,
            complexity=analysis.complexity,
            source=source,
        )

    def submit_story(self, text: str) -> SubmitStoryResponse:
        story = validate_user_story(
            text, self.settings.min_story_length, self.settings.max_story_length
        )
        analysis = classify_story(story)
        record = self._new_record(story, analysis)
        logger.info(
            "Story %s classified as %s (priority %s, complexity %s)",
            record.id, record.category.value, record.priority.value, record.complexity.value,
        )

        duplicate, main_path, snapshot_path = self.stories.save(record)
        if duplicate:
            logger.info("Story %s already stored, main table unchanged", record.id)

        cases = self.synthesizer.synthesize(record.category, story, seed=1, story_ref=record.id)
        cases_path = self.test_cases.save_generated(cases)

        return SubmitStoryResponse(
            user_story=story,
            test_cases=[tc.name for tc in cases],
            detailed_test_cases=cases,
            analysis=analysis,
            total_test_cases=len(cases),
            test_cases_csv_path=str(cases_path),
            user_story_info=UserStoryInfo(
                duplicate=duplicate,
                record=record,
                main_csv_path=str(main_path),
                snapshot_csv_path=str(snapshot_path),
            ),
            generated_at=self.clock.now(),
        )

    def generate_steps(self, request: GenerateStepsRequest) -> GenerateStepsResponse:
        names = self._check_name_lengths(validate_test_case_names(request.test_cases))
        story = check_story_length(request.user_story.strip(), self.settings.max_story_length)

        stored_rows = self.test_cases.latest_rows()
        cases = self.elaborator.elaborate(names, story, stored_rows)
        step_rows = build_step_rows(cases)
        generated_at = self.clock.now()

        detailed_path = self.test_cases.save_detailed(cases, story, generated_at)
        step_rows_path = self.test_cases.save_step_rows(cases, step_rows, story, generated_at)
        logger.info("Elaborated %s test case(s) into %s step(s)", len(cases), len(step_rows))

        return GenerateStepsResponse(
            detailed_test_cases=cases,
            step_rows=step_rows,
            total_test_cases=len(cases),
            total_steps=len(step_rows),
            detailed_steps_csv_path=str(detailed_path),
            step_rows_csv_path=str(step_rows_path),
            generated_at=generated_at,
        )

    def generate_code(self, request: GenerateCodeRequest) -> GenerateCodeResponse:
        if not request.detailed_test_cases:
            raise ValidationError(
                "Detailed test cases are required",
                "Please provide detailed test cases to generate automation code",
            )
        request_story = check_story_length(
            (request.user_story or "").strip(), self.settings.max_story_length
        )

        csv_path, csv_rows = self.test_cases.latest_detailed()
        if csv_path is None:
            raise PreconditionNotMet(
                "No test case steps CSV found",
                "Please create test case steps first before generating automation code",
            )
        logger.info("Using %s (%s row(s)) as step source", csv_path.name, len(csv_rows))

        story = self.stories.latest_text() or request_story or DEFAULT_STORY
        ctx = extract_context(story)
        generated_at = self.clock.now()
        code = self.code_generator.render(request.detailed_test_cases, ctx, story, generated_at)
        java_path = self.store.write_document("AutomationTest", "java", code)

        return GenerateCodeResponse(
            automation_code=code,
            extracted_context=ctx,
            java_file_path=str(java_path),
            test_case_count=len(request.detailed_test_cases),
            csv_source_path=str(csv_path),
            csv_record_count=len(csv_rows),
            generated_at=generated_at,
        )

    def list_stories(self, category: Optional[str] = None) -> StoryListResponse:
        stories = self.stories.list_all(category)
        return StoryListResponse(
            user_stories=stories,
            total_count=len(stories),
            category=category,
        )

    def _check_name_lengths(self, names: list[str]) -> list[str]:
        limit = self.settings.max_test_case_name_length
        too_long = [n for n in names if len(n) > limit]
        if too_long:
            raise ValidationError(
                f"Test case name too long ({len(too_long[0])} characters)",
                f"Maximum {limit} characters allowed per test case name",
            )
        return names

    @staticmethod
    def _require_file(request: UploadRequest):
        if not request.file_content or not request.file_name:
            raise ValidationError(
                "File content and name are required",
                "Please provide valid file data",
            )

    def upload_story(self, request: UploadRequest) -> UploadStoryResponse:
        self._require_file(request)
        logger.info("Processing uploaded user story file %s", request.file_name)

        if request.is_csv():
            rows = _csv_rows(request.file_content, request.file_name)
            if len(rows) < 2:
                raise ValidationError(
                    "CSV file appears to be empty or has no data rows",
                    f"No user story found in {request.file_name}",
                )
            content = _unquote(rows[1][0])
        else:
            content = request.file_content.strip()

        story = validate_user_story(
            content, self.settings.min_story_length, self.settings.max_story_length
        )
        analysis = classify_story(story)
        record = self._new_record(story, analysis, source=f"Uploaded from {request.file_name}")
        duplicate, main_path, backup_path = self.stories.save(
            record, snapshot_kind=RecordKind.USER_STORY_UPLOAD
        )

        return UploadStoryResponse(
            user_story=story,
            analysis=analysis,
            record=record,
            duplicate=duplicate,
            file_name=request.file_name,
            main_csv_path=str(main_path),
            backup_csv_path=str(backup_path),
        )

    def upload_test_cases(self, request: UploadRequest) -> UploadTestCasesResponse:
        self._require_file(request)
        logger.info("Processing uploaded test cases file %s", request.file_name)

        if request.is_csv():
            # header row first, test case name in the second column
            rows = _csv_rows(request.file_content, request.file_name)[1:]
            names = [_unquote(row[1]) for row in rows if len(row) > 1]
        else:
            names = [line.strip() for line in request.file_content.splitlines()]
        names = [n for n in names if len(n) >= MIN_UPLOADED_NAME_LENGTH]

        if not names:
            raise ValidationError(
                "No valid test cases found in the file",
                "Please check the file format and content",
            )
        limit = self.settings.max_uploaded_test_cases
        if len(names) > limit:
            raise ValidationError(
                f"Too many test cases ({len(names)})",
                f"Maximum {limit} test cases allowed per upload",
            )
        self._check_name_lengths(names)

        path = self.test_cases.save_uploaded(names, request.file_name, self.clock.now())
        return UploadTestCasesResponse(
            test_cases=names,
            record_count=len(names),
            file_name=path.name,
            csv_path=str(path),
        )


def get_pipeline() -> TestAssetPipeline:
    return TestAssetPipeline(get_store(), get_settings())
