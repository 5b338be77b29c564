from fastapi import APIRouter, Depends, HTTPException
import logging

from zenqa.errors import PipelineError
from zenqa.models.request_models import GenerateStepsRequest, SubmitStoryRequest, UploadRequest
from zenqa.models.test_case_models import (
    GenerateStepsResponse,
    SubmitStoryResponse,
    UploadTestCasesResponse,
)
from zenqa.services.pipeline import TestAssetPipeline, get_pipeline

router = APIRouter(prefix="/api", tags=["Test Generation"])

logger = logging.getLogger(__name__)


@router.post("/generate-testcases", response_model=SubmitStoryResponse)
def generate_test_cases(
    request: SubmitStoryRequest,
    pipeline: TestAssetPipeline = Depends(get_pipeline),
):
    """
    User story -> stored record + canned test cases.
    1. Validate and classify the story
    2. Save it to UserStory.csv (skipped when the text is already there) and a snapshot
    3. Synthesize test cases from the category catalog
    4. Save them to TestCases.csv and a snapshot
    """
    try:
        return pipeline.submit_story(request.user_story)
    except PipelineError as e:
        logger.error("Test case generation failed: %s", e.message)
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.post("/create-test-steps", response_model=GenerateStepsResponse)
def create_test_steps(
    request: GenerateStepsRequest,
    pipeline: TestAssetPipeline = Depends(get_pipeline),
):
    """Test case names -> detailed steps, reusing stored rows whose names match."""
    try:
        return pipeline.generate_steps(request)
    except PipelineError as e:
        logger.error("Step generation failed: %s", e.message)
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.post("/upload-testcases", response_model=UploadTestCasesResponse)
def upload_test_cases(
    request: UploadRequest,
    pipeline: TestAssetPipeline = Depends(get_pipeline),
):
    try:
        return pipeline.upload_test_cases(request)
    except PipelineError as e:
        logger.error("Test case upload failed: %s", e.message)
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
