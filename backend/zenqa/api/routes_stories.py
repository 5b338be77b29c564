from fastapi import APIRouter, Depends, HTTPException
import logging

from zenqa.errors import PipelineError
from zenqa.models.request_models import UploadRequest
from zenqa.models.test_case_models import StoryListResponse, UploadStoryResponse
from zenqa.services.pipeline import TestAssetPipeline, get_pipeline

router = APIRouter(prefix="/api", tags=["User Stories"])

logger = logging.getLogger(__name__)


@router.get("/user-stories", response_model=StoryListResponse)
def list_user_stories(pipeline: TestAssetPipeline = Depends(get_pipeline)):
    """All stored stories, newest first."""
    try:
        return pipeline.list_stories()
    except PipelineError as e:
        logger.error("Listing user stories failed: %s", e.message)
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.get("/user-stories/category/{category}", response_model=StoryListResponse)
def list_user_stories_by_category(
    category: str,
    pipeline: TestAssetPipeline = Depends(get_pipeline),
):
    try:
        return pipeline.list_stories(category)
    except PipelineError as e:
        logger.error("Listing %s user stories failed: %s", category, e.message)
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.post("/upload-userstory", response_model=UploadStoryResponse)
def upload_user_story(
    request: UploadRequest,
    pipeline: TestAssetPipeline = Depends(get_pipeline),
):
    try:
        return pipeline.upload_story(request)
    except PipelineError as e:
        logger.error("User story upload failed: %s", e.message)
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
