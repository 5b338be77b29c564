"""
Failure taxonomy shared by the pipeline and the HTTP layer.

Every failure carries a short code, a human message and optional low-level
detail. Routes turn them into HTTPException responses; nothing is retried.
"""

from typing import Optional


class PipelineError(Exception):
    code = "pipeline_error"
    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": self.code,
            "message": self.message,
            "details": self.detail,
        }


class ValidationError(PipelineError):
    """Missing or too-short input. Raised before any work is performed."""

    code = "validation_error"
    status_code = 400


class IOFailure(PipelineError):
    """Record store read/write failure at a named stage."""

    code = "io_failure"
    status_code = 500

    def __init__(self, stage: str, message: str, detail: Optional[str] = None):
        super().__init__(f"{message} (stage: {stage})", detail)
        self.stage = stage

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["stage"] = self.stage
        return payload


class PreconditionNotMet(PipelineError):
    code = "precondition_not_met"
    status_code = 400
