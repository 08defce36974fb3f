from typing import Optional

from fastapi import HTTPException, status

class BaseAppException(HTTPException):
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)

class ValidationError(BaseAppException):
    def __init__(self, detail: str = "Validation error"):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)

class NotFoundError(BaseAppException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

class ServiceUnavailableError(BaseAppException):
    def __init__(self, detail: str = "Upstream data source unavailable"):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)

class UpstreamFetchError(Exception):
    """Raised when the Sheets-backed data API cannot deliver a feed"""
    def __init__(self, source: str, detail: str, status_code: Optional[int] = None):
        self.source = source
        self.detail = detail
        self.status_code = status_code
        super().__init__(f"{source}: {detail}")

class ConfigurationError(Exception):
    """Raised at startup when a rule table or the outlet whitelist is malformed"""
    pass
