"""Pydantic models for the completion check and the final submission."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class CompletionStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    exists: bool
    has_completed: bool = Field(alias="hasCompleted")
    user_id: Optional[str] = Field(default=None, alias="userId")


class SubmitPayload(BaseModel):
    phone: str
    name: Optional[str] = None
    email: Optional[str] = None
    answers: Dict[str, Any]


class SubmissionResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    phone: str


class UploadResult(BaseModel):
    url: str


__all__ = ["CompletionStatus", "SubmitPayload", "SubmissionResult", "UploadResult"]
