"""Upload endpoint: relay one multipart file to the storage provider."""

from typing import Any
from uuid import uuid4

from asgi_correlation_id import correlation_id
from robyn import Request, Response, status_codes

from app.core.exceptions import RemoteUploadError, StagingError, ValidationError
from app.core.logger import LogIcon, logger
from app.core.router import REQUEST_ID_HEADER, Router, json_error, parse_response
from app.models.core import UploadFile
from app.models.upload import IncomingFile, UploadResponse
from app.services.policy import declared_mime_type
from app.services.relay import UploadRelay

router = Router(__file__)

USER_ID_HEADER = "x-user-id"

UPLOAD_FAILED = "Upload failed"


def incoming_file(name: str, payload: bytes) -> IncomingFile:
    return IncomingFile(
        original_name=name,
        declared_mime_type=declared_mime_type(name),
        size_bytes=len(payload),
    )


async def handle_upload(relay: UploadRelay, files: UploadFile, headers: Any) -> Response:
    """Relay the single uploaded file and shape the JSON response."""
    request_id = headers.get(REQUEST_ID_HEADER) or uuid4().hex
    correlation_id.set(request_id)
    echo = {REQUEST_ID_HEADER: request_id}

    if not files:
        return json_error(status_codes.HTTP_400_BAD_REQUEST, "No file", echo)
    if len(files) > 1:
        return json_error(status_codes.HTTP_400_BAD_REQUEST, "Only one file allowed", echo)

    name, payload = files.first()
    file = incoming_file(name, payload)
    logger.info("Upload received", icon=LogIcon.UPLOAD, name=name, mime=file.declared_mime_type, size=file.size_bytes)

    try:
        result = await relay.relay(file, payload, uploader_id=headers.get(USER_ID_HEADER))
    except ValidationError as ex:
        return json_error(ex.status_code, str(ex), echo)
    except (StagingError, RemoteUploadError) as ex:
        logger.error("Upload failed", icon=LogIcon.ERROR, name=name, error=str(ex))
        return json_error(status_codes.HTTP_500_INTERNAL_SERVER_ERROR, UPLOAD_FAILED, echo)

    return parse_response(UploadResponse.from_result(result), headers=echo)


async def upload(files: UploadFile, request: Request, global_dependencies) -> Response:
    relay: UploadRelay = global_dependencies["state"].upload_relay
    return await handle_upload(relay, files, request.headers)


router.post("/upload")(upload)
