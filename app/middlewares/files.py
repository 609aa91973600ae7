"""File upload middleware for OpenAPI multipart/form-data patching."""

import orjson
from robyn import Response

from app.core.logger import LogIcon, logger
from app.core.router import FILE_UPLOAD_ENDPOINTS
from app.middlewares.base import BaseMiddleware

UPLOAD_REQUEST_BODY = {
    "content": {
        "multipart/form-data": {
            "schema": {
                "type": "object",
                "properties": {
                    "file": {
                        "type": "string",
                        "format": "binary",
                        "description": "Image, video, audio or document to relay (max 100 MiB)",
                    }
                },
                "required": ["file"],
            }
        }
    },
    "required": True,
}

USER_ID_PARAMETER = {
    "name": "X-User-Id",
    "in": "header",
    "required": False,
    "description": "Caller identifier used to namespace the scratch file",
    "schema": {"type": "string"},
}


def patch_upload_spec(spec: dict, endpoints: set[str]) -> dict:
    """Document file upload endpoints as multipart/form-data."""
    paths = spec.get("paths", {})
    for endpoint in endpoints:
        for operation in paths.get(endpoint, {}).values():
            operation["requestBody"] = UPLOAD_REQUEST_BODY
            parameters = [p for p in operation.get("parameters", []) if p.get("name") != USER_ID_PARAMETER["name"]]
            operation["parameters"] = [*parameters, USER_ID_PARAMETER]
    return spec


class FileUploadOpenAPIMiddleware(BaseMiddleware):
    """Patches OpenAPI responses to use multipart/form-data for file upload endpoints."""

    endpoints = frozenset(["/openapi.json"])

    def after(self, response: Response) -> Response:
        if not FILE_UPLOAD_ENDPOINTS:
            return response

        try:
            spec = orjson.loads(response.description)
        except orjson.JSONDecodeError as ex:
            logger.warning("OpenAPI document is not JSON, left unpatched", icon=LogIcon.WARNING, error=str(ex))
            return response

        response.description = orjson.dumps(patch_upload_spec(spec, FILE_UPLOAD_ENDPOINTS)).decode()
        return response
