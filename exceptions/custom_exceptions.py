from typing import Optional

from fastapi import status


class BaseAppException(Exception):
    """Base class for all app-specific exceptions."""
    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        code: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details
        super().__init__(message)

class BusinessValidationException(BaseAppException):
    """Invalid input or business rule violation."""
    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            message, status.HTTP_422_UNPROCESSABLE_ENTITY, "invalid_request", details
        )

class ConfigurationException(BaseAppException):
    """Required environment configuration is missing."""
    def __init__(self, message: str = "Required configuration is missing"):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, "missing_env")

class HotelsQueryException(BaseAppException):
    """No hotels could be loaded and at least one query failed."""
    def __init__(
        self,
        message: str = "호텔 목록을 가져올 수 없습니다",
        details: Optional[dict] = None,
    ):
        super().__init__(
            message, status.HTTP_500_INTERNAL_SERVER_ERROR, "hotels_query_failed", details
        )

class DatabaseException(BaseAppException):
    """Database operation failed."""
    def __init__(self, message: str = "A database error occurred"):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, "database_error")

class InternalServerException(BaseAppException):
    """Unexpected error in backend logic."""
    def __init__(self, message: str = "서버 오류가 발생했습니다"):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)


class RepositoryQueryError(Exception):
    """A single repository query failed."""
    def __init__(self, message: str, table: str = "", column: Optional[str] = None):
        self.table = table
        self.column = column
        super().__init__(message)

class MissingColumnError(RepositoryQueryError):
    """The store rejected a query because a referenced column does not exist."""
