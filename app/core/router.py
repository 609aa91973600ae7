"""Router with multipart file injection and response handling."""

import inspect
from collections.abc import Callable
from functools import wraps
from typing import Any
from uuid import uuid4

import orjson
from pydantic import BaseModel
from robyn import Request, Response, SubRouter, status_codes
from robyn.robyn import HttpMethod

from app.models.core import UploadFile

FILE_UPLOAD_ENDPOINTS: set[str] = set()

JSON_HEADERS = {"content-type": "application/json"}
REQUEST_ID_HEADER = "x-request-id"


def parse_endpoint_signature(sig: inspect.Signature) -> set[str]:
    """Names of the parameters annotated as UploadFile."""
    return {name for name, param in sig.parameters.items() if param.annotation is UploadFile}


def json_error(status_code: int, message: str, headers: dict[str, str] | None = None) -> Response:
    """Build a ``{"error": message}`` response."""
    return Response(
        status_code=status_code,
        headers={**JSON_HEADERS, **(headers or {})},
        description=orjson.dumps({"error": message}).decode(),
    )


def parse_request_files(
    file_params: set[str],
    request: Request,
    kwargs: dict[str, Any],
) -> Response | None:
    """Transfer request.files to UploadFile kwargs."""
    if not file_params:
        return None

    files = getattr(request, "files", None)
    if not files:
        headers = getattr(request, "headers", None)
        request_id = (headers.get(REQUEST_ID_HEADER) if headers is not None else None) or uuid4().hex
        return json_error(status_codes.HTTP_400_BAD_REQUEST, "No file", {REQUEST_ID_HEADER: request_id})

    for param_name in file_params:
        kwargs[param_name] = UploadFile(files=dict(files))

    return None


def parse_response(
    result: Any,
    status_code: int = status_codes.HTTP_200_OK,
    headers: dict[str, str] | None = None,
) -> Response:
    """Convert handler result to Response."""
    extra = headers or {}
    match result:
        case Response():
            return result
        case BaseModel():
            return Response(
                status_code=status_code,
                headers={**JSON_HEADERS, **extra},
                description=result.model_dump_json(),
            )
        case dict():
            return Response(
                status_code=status_code,
                headers={**JSON_HEADERS, **extra},
                description=orjson.dumps(result).decode(),
            )
        case _:
            return Response(
                status_code=status_code,
                headers={"content-type": "text/plain", **extra},
                description=str(result),
            )


HTTP_METHODS = (
    HttpMethod.GET,
    HttpMethod.POST,
    HttpMethod.PUT,
    HttpMethod.DELETE,
    HttpMethod.PATCH,
    HttpMethod.HEAD,
    HttpMethod.OPTIONS,
)


def _create_method_wrapper(original_method: Callable, router_prefix: str = "") -> Callable:
    @wraps(original_method)
    def method_wrapper(*args, **kwargs) -> Callable:
        endpoint = args[0] if args else kwargs.get("endpoint", "")
        decorator = original_method(*args, **kwargs)

        def handler_decorator(handler: Callable) -> Callable:
            sig = inspect.signature(handler)
            file_params = parse_endpoint_signature(sig)
            has_request_param = "request" in sig.parameters

            if file_params:
                full_path = f"{router_prefix}{endpoint}".replace("//", "/")
                FILE_UPLOAD_ENDPOINTS.add(full_path)

            @wraps(handler)
            async def wrapped_handler(request: Request, **h_kwargs):
                if file_params and (error := parse_request_files(file_params, request, h_kwargs)):
                    return error

                # Pass request to handler only if it declared it
                if has_request_param:
                    h_kwargs["request"] = request

                result = await handler(**h_kwargs)
                return parse_response(result)

            # Build signature: always include request for Robyn injection
            new_params = [inspect.Parameter("request", inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=Request)]
            new_params.extend(
                param for name, param in sig.parameters.items() if name != "request" and name not in file_params
            )

            wrapped_handler.__signature__ = sig.replace(parameters=new_params)  # type: ignore[attr-defined]
            return decorator(wrapped_handler)

        return handler_decorator

    return method_wrapper


class Router(SubRouter):
    """SubRouter with automatic file injection and response handling."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._prefix = kwargs.get("prefix", "")
        self._wrap_methods()

    def _wrap_methods(self) -> None:
        """Wrap HTTP methods with parsing logic."""
        for method in HTTP_METHODS:
            method_name = str(method).split(".")[-1].lower()
            if hasattr(self, method_name):
                original_method = getattr(self, method_name)
                wrapped_method = _create_method_wrapper(original_method, self._prefix)
                setattr(self, method_name, wrapped_method)
