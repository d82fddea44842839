import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from generation.llm import LLMError
from gitdata.client import GitHubAPIError
from gitdata.hosting import HostingAPIError

logger = logging.getLogger(__name__)

# pydantic error types we report as "missing" rather than "invalid"
_MISSING_TYPES = {"missing", "string_too_short", "too_short"}


class APIError(Exception):
    """Base for errors that map straight onto a JSON envelope and status code."""

    status_code = 500

    def __init__(self, message: str, status_code: int = None, **extra):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra


class BadRequest(APIError):
    status_code = 400


class Unauthorized(APIError):
    status_code = 401


class NotFound(APIError):
    status_code = 404


class UpstreamError(APIError):
    status_code = 500


class ConfigError(APIError):
    status_code = 500


def error_body(message: str, **extra) -> dict:
    return {"success": False, "message": message, **extra}


def validation_message(exc: RequestValidationError) -> str:
    missing, invalid = [], []
    for err in exc.errors():
        loc = [str(part) for part in err["loc"] if part not in ("body", "query", "header")]
        name = ".".join(loc)
        if not name:
            return "Missing or malformed request body"
        if err["type"] in _MISSING_TYPES:
            missing.append(name)
        else:
            invalid.append(f"{name} ({err['msg']})")

    if missing:
        label = "field" if len(missing) == 1 else "fields"
        return f"Missing required {label}: {', '.join(missing)}"
    return f"Invalid field: {', '.join(invalid)}"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, **exc.extra))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=error_body(validation_message(exc)))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail)))

    @app.exception_handler(GitHubAPIError)
    @app.exception_handler(HostingAPIError)
    @app.exception_handler(LLMError)
    async def upstream_error_handler(request: Request, exc: Exception):
        logger.error("%s %s upstream failure: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content=error_body(str(exc)))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled error: %s", exc, exc_info=True)
        return JSONResponse(status_code=500, content=error_body("An unexpected error occurred."))
