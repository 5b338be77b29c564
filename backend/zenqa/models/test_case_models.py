from pydantic import BaseModel, Field, field_validator
from typing import Optional
from enum import Enum
from datetime import datetime


class Level(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Category(str, Enum):
    AUTHENTICATION = "Authentication"
    SEARCH = "Search"
    REGISTRATION = "Registration"
    PAYMENT = "Payment"
    USER_MANAGEMENT = "User Management"
    FILE_MANAGEMENT = "File Management"
    COMMUNICATION = "Communication"
    GENERAL = "General"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Category":
        """Case-insensitive lookup by display value, General when unknown."""
        if value:
            for member in cls:
                if member.value.lower() == value.strip().lower():
                    return member
        return cls.GENERAL


class StepType(str, Enum):
    NAVIGATION = "Navigation"
    VERIFICATION = "Verification"
    DATA_ENTRY = "Data Entry"
    USER_INTERACTION = "User Interaction"
    WAIT = "Wait/Synchronization"
    AUTHENTICATION = "Authentication"
    CLEANUP = "Cleanup"
    ACTION = "Action"


class StoryAnalysis(BaseModel):
    category: Category = Category.GENERAL
    priority: Level = Level.MEDIUM
    complexity: Level = Level.MEDIUM


class UserStoryRecord(BaseModel):
    id: int
    created_at: datetime
    text: str
    category: Category
    priority: Level
    complexity: Level
    source: Optional[str] = None


class TestCase(BaseModel):
    __test__ = False

    test_case_id: str
    name: str = Field(..., min_length=1)
    category: Category = Category.GENERAL
    priority: Level = Level.MEDIUM
    preconditions: str = ""
    steps: list[str] = Field(..., min_length=1)
    expected_result: str = ""
    sample_data: str = ""
    user_story_ref: Optional[int] = None

    @field_validator("steps")
    @classmethod
    def steps_not_blank(cls, v):
        steps = [s.strip() for s in v if s and s.strip()]
        if not steps:
            raise ValueError("a test case needs at least one step")
        return steps

    @field_validator("priority", mode="before")
    @classmethod
    def priority_from_label(cls, v):
        # stored rows may carry any casing
        if isinstance(v, str) and v.strip().lower() in ("low", "medium", "high"):
            return v.strip().capitalize()
        return v


class StepRow(BaseModel):
    step_id: str
    test_case_id: str
    test_case_name: str
    step_number: int = Field(..., ge=1)
    description: str
    step_type: StepType
    complexity: Level
    estimated_duration_seconds: int
    expected_result: str


class Selectors(BaseModel):
    username_field: str = "#username"
    password_field: str = "#password"
    login_button: str = "#loginBtn"
    dashboard: str = ".dashboard"


class ExtractedContext(BaseModel):
    base_url: str = "https://example.com"
    username: str = "testuser@example.com"
    password: str = "Test@123456"
    application_name: str = "Application"
    features: list[str] = Field(default_factory=list)
    selectors: Selectors = Field(default_factory=Selectors)


class UserStoryInfo(BaseModel):
    saved: bool = True
    duplicate: bool = False
    record: UserStoryRecord
    main_csv_path: str
    snapshot_csv_path: str


class SubmitStoryResponse(BaseModel):
    success: bool = True
    user_story: str
    test_cases: list[str]
    detailed_test_cases: list[TestCase]
    analysis: StoryAnalysis
    total_test_cases: int
    test_cases_csv_path: str
    user_story_info: UserStoryInfo
    generated_at: datetime


class GenerateStepsResponse(BaseModel):
    success: bool = True
    detailed_test_cases: list[TestCase]
    step_rows: list[StepRow]
    total_test_cases: int
    total_steps: int
    detailed_steps_csv_path: str
    step_rows_csv_path: str
    generated_at: datetime


class GenerateCodeResponse(BaseModel):
    success: bool = True
    automation_code: str
    extracted_context: ExtractedContext
    java_file_path: str
    test_case_count: int
    csv_source_path: str
    csv_record_count: int
    language: str = "java"
    framework: str = "playwright"
    generated_at: datetime


class StoryListResponse(BaseModel):
    success: bool = True
    user_stories: list[UserStoryRecord]
    total_count: int
    category: Optional[str] = None


class UploadStoryResponse(BaseModel):
    success: bool = True
    user_story: str
    analysis: StoryAnalysis
    record: UserStoryRecord
    duplicate: bool
    file_name: str
    main_csv_path: str
    backup_csv_path: str


class UploadTestCasesResponse(BaseModel):
    success: bool = True
    test_cases: list[str]
    record_count: int
    file_name: str
    csv_path: str
