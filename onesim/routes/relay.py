"""
OneSim Backend: File Relay Route
================================

What:  POST /process, the multipart upload hand-off to the comparison service.
How:   The form is read directly so every `file` part is seen: exactly one
       real file is accepted. FileRelay stages, forwards and cleans up; the
       service's answer is returned with its own status, body and content
       type.

Error responses (handled by global exception handlers):
    HTTP 400: no file in the `file` part (MissingFileError)
    HTTP 400: more than one `file` part (ValidationError)
    HTTP 500: comparison service failed (RelayError, with `details`)
"""

import logging

from fastapi import APIRouter, Depends, Request, Response

from onesim.dependencies import get_file_relay
from onesim.schemas.common import ErrorResponse
from onesim.services.file_relay import FileRelay, select_upload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Relay"])

# The form is parsed by hand, so describe the body for the OpenAPI docs
_UPLOAD_BODY = {
    "requestBody": {
        "required": True,
        "content": {
            "multipart/form-data": {
                "schema": {
                    "type": "object",
                    "properties": {
                        "file": {
                            "type": "string",
                            "format": "binary",
                            "description": "File to compare",
                        }
                    },
                    "required": ["file"],
                }
            }
        },
    }
}


@router.post(
    "/process",
    responses={
        200: {"description": "Comparison service response, relayed unchanged"},
        400: {"description": "No file, or more than one file", "model": ErrorResponse},
        500: {"description": "Comparison service failed", "model": ErrorResponse},
    },
    summary="Relay an uploaded file to the comparison service",
    openapi_extra=_UPLOAD_BODY,
)
async def process_file(
    request: Request,
    relay: FileRelay = Depends(get_file_relay),
) -> Response:
    form = await request.form()
    try:
        upload = select_upload(form.getlist("file"))
        result = await relay.relay(upload)
    finally:
        await form.close()

    return Response(
        content=result.content,
        status_code=result.status_code,
        media_type=result.content_type,
    )
