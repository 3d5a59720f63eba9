# Pydantic schemas package
from eventdesk.backend.schemas.base import (
    ApiResponse,
    ErrorDetail,
    ErrorResponse,
    ORMModel,
    PaginatedResponse,
    PaginationInfo,
    ResponseMetadata,
)

__all__ = [
    "ApiResponse",
    "ErrorDetail",
    "ErrorResponse",
    "ORMModel",
    "PaginatedResponse",
    "PaginationInfo",
    "ResponseMetadata",
]
