"""
OneSim Backend: File Relay Service
==================================

What:  Hands an uploaded file to the external comparison service and relays
       its answer.
How:   The upload is streamed into a UUID-named temp file under UPLOAD_DIR,
       forwarded as multipart field `file` with httpx, and the service's body,
       status and content type are returned unchanged. The temp file is a
       scoped resource (`staged_upload`) released on every exit path.
Who:   Built in the lifespan (app.state.file_relay) with a shared
       httpx.AsyncClient; called by POST /process.

Failure mapping:
    no file attached                 → MissingFileError (400)
    more than one `file` part        → ValidationError (400)
    transport error / timeout        → RelayError (500), details = {}
    non-2xx from comparison service  → RelayError (500), details = service payload
"""

import logging
import os
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator, Optional, Sequence, Union

import aiofiles
import httpx
from starlette.datastructures import UploadFile

from onesim.exceptions import FileStorageError, MissingFileError, RelayError, ValidationError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class RelayResult:
    """Comparison service response, kept verbatim."""
    status_code: int
    content: bytes
    content_type: str


def select_upload(parts: Sequence[Union[UploadFile, str]]) -> UploadFile:
    """
    The single uploaded file among the form values named `file`.

    A value that arrived as a plain text field is not an upload.

    Raises:
        ValidationError: more than one `file` part.
        MissingFileError: no part, or the part carries no file.
    """
    if len(parts) > 1:
        raise ValidationError(
            message="Only one file can be uploaded per request.",
            field="file",
        )
    if not parts or not isinstance(parts[0], UploadFile) or not parts[0].filename:
        raise MissingFileError()
    return parts[0]


def _error_payload(response: Optional[httpx.Response]) -> Any:
    """The service's own error body: JSON when it parses, text otherwise."""
    if response is None:
        return {}
    try:
        return response.json()
    except ValueError:
        return response.text or {}


class FileRelay:
    """
    Stage → forward → relay → clean up, for one file per request.

    Lifecycle of an upload:
        1. staged_upload() writes the UploadFile to UPLOAD_DIR/<uuid><ext>
        2. forward() posts it to the comparison service
        3. the staged file is removed whatever happened in step 2
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        target_url: str,
        upload_dir: str,
    ):
        self.client = client
        self.target_url = target_url
        self.upload_dir = Path(upload_dir).resolve()
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        logger.info(
            "FileRelay initialized: target=%s upload_dir=%s",
            self.target_url,
            self.upload_dir,
        )

    @asynccontextmanager
    async def staged_upload(self, upload: UploadFile) -> AsyncIterator[Path]:
        """
        Write the upload to a temp file and yield its path.

        The file is deleted when the block exits, normally or by exception,
        including a failure half-way through writing it.
        """
        extension = Path(upload.filename or "").suffix.lower()
        path = self.upload_dir / f"{uuid.uuid4()}{extension}"
        try:
            try:
                async with aiofiles.open(path, "wb") as f:
                    while chunk := await upload.read(CHUNK_SIZE):
                        await f.write(chunk)
            except OSError as e:
                logger.error("Failed to stage upload at %s: %s", path, str(e))
                raise FileStorageError(
                    message="Failed to save the uploaded file. Please try again.",
                    context={"path": str(path), "os_error": str(e)},
                )
            logger.info(
                "Upload staged: %s (%d bytes)",
                path.name,
                path.stat().st_size,
            )
            yield path
        finally:
            self._remove(path)

    def _remove(self, path: Path) -> None:
        try:
            os.remove(path)
            logger.debug("Removed staged upload: %s", path.name)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error("Failed to remove staged upload %s: %s", path.name, str(e))

    async def forward(self, path: Path, filename: str, content_type: Optional[str]) -> RelayResult:
        """
        POST the staged file to the comparison service.

        Raises:
            RelayError: on any transport failure, timeout or non-2xx status.
        """
        try:
            async with aiofiles.open(path, "rb") as fh:
                content = await fh.read()
        except OSError as e:
            logger.error("Failed to read staged upload %s: %s", path.name, str(e))
            raise FileStorageError(
                message="Failed to read the uploaded file. Please try again.",
                context={"path": str(path), "os_error": str(e)},
            )

        response: Optional[httpx.Response] = None
        try:
            response = await self.client.post(
                self.target_url,
                files={"file": (filename, content, content_type or "application/octet-stream")},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            details = _error_payload(response)
            logger.error("Comparison service call failed: %s", str(e))
            logger.error("Details: %s", details)
            raise RelayError(
                message=str(e) or type(e).__name__,
                details=details,
                context={"target": self.target_url, "error_type": type(e).__name__},
            )

        logger.info(
            "Comparison service answered %d (%d bytes)",
            response.status_code,
            len(response.content),
        )
        return RelayResult(
            status_code=response.status_code,
            content=response.content,
            content_type=response.headers.get("content-type", "application/json"),
        )

    async def relay(self, upload: Optional[UploadFile]) -> RelayResult:
        """
        Complete relay workflow for one upload.

        Raises:
            MissingFileError: no file part in the request.
            RelayError: the comparison service could not be used.
        """
        if upload is None or not upload.filename:
            raise MissingFileError()

        logger.info("Relaying upload: filename=%s", upload.filename)
        async with self.staged_upload(upload) as path:
            return await self.forward(path, upload.filename, upload.content_type)

    async def aclose(self) -> None:
        await self.client.aclose()
