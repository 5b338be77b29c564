from fastapi import APIRouter, Depends, HTTPException
import logging

from zenqa.errors import PipelineError
from zenqa.models.request_models import GenerateCodeRequest
from zenqa.models.test_case_models import GenerateCodeResponse
from zenqa.services.pipeline import TestAssetPipeline, get_pipeline

router = APIRouter(prefix="/api", tags=["Automation"])

logger = logging.getLogger(__name__)


@router.post("/generate-automation-from-steps", response_model=GenerateCodeResponse)
def generate_automation(
    request: GenerateCodeRequest,
    pipeline: TestAssetPipeline = Depends(get_pipeline),
):
    """
    Detailed test cases -> Java Playwright test class.
    Requires a DetailedTestSteps snapshot from a previous create-test-steps call.
    The source is saved as AutomationTest_<timestamp>.java and returned inline.
    """
    try:
        return pipeline.generate_code(request)
    except PipelineError as e:
        logger.error("Automation code generation failed: %s", e.message)
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
