"""Image upload endpoint for upload-type questions."""

from __future__ import annotations

import logging

import anyio
from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse

from quizflow.http.problem import problem_response
from quizflow.logic.uploads import store_upload

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/upload", summary="Upload an image", status_code=201)
async def upload(
    request: Request,
    file: UploadFile | None = File(default=None),
    oldUrl: str | None = Form(default=None),  # noqa: N803 - form field name
):
    if file is None:
        return problem_response(400, "No file provided")
    content = await file.read()
    cfg = request.app.state.config.uploads
    stored = await anyio.to_thread.run_sync(
        lambda: store_upload(
            content,
            filename=file.filename,
            content_type=file.content_type,
            cfg=cfg,
            old_url=oldUrl,
        )
    )
    return JSONResponse({"success": True, "data": stored}, status_code=201)


__all__ = ["router", "upload"]
