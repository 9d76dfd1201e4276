"""Pydantic response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for response serialization
and automatic OpenAPI documentation. Pydantic models enforce field types
at runtime and generate JSON Schema that appears in the /docs UI.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Response models never expose internal implementation details
  (temp directories, cancel events)
- result carries AnalysisResult.to_dict() and is only set when completed
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class AnalysisCreatedResponse(BaseModel):
    """Response returned when a new analysis job is submitted.

    RULES:
    - status is always 'pending' on creation
    """

    id: str = Field(description="Unique job identifier (UUID) for polling status.")
    status: str = Field(description="Initial job status (always 'pending').")
    filename: str = Field(description="Original uploaded filename.")

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "id": "550e8400e29b41d4a716446655440000",
                "status": "pending",
                "filename": "answer1.webm",
            }
        ]
    }}


class AnalysisJobResponse(BaseModel):
    """Analysis job status response, with the result once completed."""

    id: str = Field(description="Unique job identifier (UUID).")
    status: str = Field(description="Current job status.")
    filename: str = Field(description="Original uploaded filename.")
    created_at: float = Field(description="Job creation timestamp (Unix epoch seconds).")
    config: Dict[str, Any] = Field(description="Options used for this job.")
    error: Optional[str] = Field(
        default=None,
        description="Error message, only present when status is 'failed'.",
    )
    result: Optional[Dict[str, Any]] = Field(
        default=None,
        description=(
            "Transcript, speech metrics, feedback and recommendations, "
            "only present when status is 'completed'."
        ),
    )

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "id": "550e8400e29b41d4a716446655440000",
                "status": "transcribing",
                "filename": "answer1.webm",
                "created_at": 1739959200.0,
                "config": {"plain": False},
                "error": None,
                "result": None,
            }
        ]
    }}


class ErrorResponse(BaseModel):
    """Standard error response body."""

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
