from pydantic import BaseModel, Field, ConfigDict
from typing import Optional

from zenqa.models.test_case_models import TestCase


class SubmitStoryRequest(BaseModel):
    """A user story typed into the form."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "user_story": "As a user, I want to login to the application",
            }
        }
    )

    user_story: str = Field(
        default="",
        description="Free-form English user story",
    )


class GenerateStepsRequest(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "test_cases": [
                    "Verify successful login with valid credentials",
                    "Verify password field masking during input",
                ],
                "user_story": "As a user, I want to login to the application",
            }
        }
    )

    test_cases: list[str] = Field(
        default_factory=list,
        description="Short test case names to elaborate into steps",
    )
    user_story: str = Field(default="")


class GenerateCodeRequest(BaseModel):
    detailed_test_cases: list[TestCase] = Field(
        default_factory=list,
        description="Elaborated test cases, usually the create-test-steps output",
    )
    user_story: Optional[str] = Field(
        default=None,
        description="Used for context extraction when no story is stored yet",
    )


class UploadRequest(BaseModel):
    """File content posted by the browser after reading it client-side."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "file_content": "User Story\nAs a user, I want to search for products",
                "file_name": "stories.csv",
                "file_type": "csv",
            }
        }
    )

    file_content: str = Field(default="", description="Raw file text")
    file_name: str = Field(default="")
    file_type: Optional[str] = Field(
        default=None,
        description="'csv' or 'text'; inferred from the file name when omitted",
    )

    def is_csv(self) -> bool:
        return self.file_type == "csv" or self.file_name.lower().endswith(".csv")
