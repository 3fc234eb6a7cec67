import structlog
from fastapi import Request, HTTPException
from fastapi.exceptions import RequestValidationError
from exceptions.custom_exceptions import BaseAppException
from utils.response_helpers import error_response

logger = structlog.get_logger(__name__)

def setup_exception_handlers(app):

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        logger.warning("http_exception", path=request.url.path, detail=exc.detail)
        return error_response(str(exc.detail), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning("validation_error", path=request.url.path, errors=exc.errors())
        return error_response(
            "Invalid or missing request fields",
            status_code=422,
            code="invalid_request",
            details={"errors": exc.errors()},
        )

    @app.exception_handler(BaseAppException)
    async def app_exception_handler(request: Request, exc: BaseAppException):
        logger.warning(
            "app_exception",
            path=request.url.path,
            code=exc.code,
            error=exc.message,
        )
        return error_response(
            exc.message,
            status_code=exc.status_code,
            code=exc.code,
            details=exc.details,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(
            "unhandled_exception", path=request.url.path, error=str(exc), exc_info=True
        )
        return error_response("서버 오류가 발생했습니다", status_code=500)
