"""
Error response schemas for API documentation.
Mirrors the envelope produced by ErrorHandlerService.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Any, Dict


class ErrorDetail(BaseModel):
    """Schema for individual error detail."""

    field: Optional[str] = Field(
        None,
        description="Field name that caused the error",
        examples=["body -> surface"]
    )

    message: str = Field(
        ...,
        description="Human-readable error message"
    )

    type: Optional[str] = Field(
        None,
        description="Error type identifier"
    )


class ErrorResponse(BaseModel):
    """Schema for standardized error responses."""

    code: str = Field(
        ...,
        description="Error code identifier",
        examples=["NOT_FOUND"]
    )

    message: str = Field(
        ...,
        description="Human-readable error message"
    )

    timestamp: str = Field(
        ...,
        description="Error timestamp in ISO format"
    )

    request_id: str = Field(
        ...,
        description="Unique request identifier for tracking",
        examples=["abc12345"]
    )

    details: Optional[List[ErrorDetail]] = Field(
        None,
        description="Detailed error information for validation errors"
    )


class APIErrorResponse(BaseModel):
    """Schema for API error response wrapper."""

    error: ErrorResponse = Field(
        ...,
        description="Error information"
    )


def _response(description: str, code: str, message: str) -> Dict[str, Any]:
    return {
        "description": description,
        "model": APIErrorResponse,
        "content": {
            "application/json": {
                "example": {
                    "error": {
                        "code": code,
                        "message": message,
                        "timestamp": "2024-01-01T00:00:00Z",
                        "request_id": "abc12345"
                    }
                }
            }
        }
    }


COMMON_ERROR_RESPONSES = {
    400: _response("Bad Request - Invalid request parameters", "BAD_REQUEST", "File upload error: no files provided"),
    401: _response("Unauthorized - Authentication required", "UNAUTHORIZED", "Authentication token required"),
    403: _response("Forbidden - Policy denied the action", "FORBIDDEN", "Insufficient permissions to update this property"),
    404: _response("Not Found - Missing, deleted or not visible", "NOT_FOUND", "Property not found with ID: 123e4567-e89b-12d3-a456-426614174000"),
    409: _response("Conflict - Duplicate resource or concurrent write", "CONFLICT", "User with identifier 'agent@example.com' already exists"),
    422: _response("Validation Error - Request validation failed", "VALIDATION_ERROR", "Request validation failed"),
    500: _response("Internal Server Error", "INTERNAL_SERVER_ERROR", "An unexpected error occurred. Please try again later."),
}


def get_error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """
    Get error response schemas for specific status codes.

    Args:
        status_codes: HTTP status codes to include

    Returns:
        Dictionary of error response schemas
    """
    return {
        code: COMMON_ERROR_RESPONSES[code]
        for code in status_codes
        if code in COMMON_ERROR_RESPONSES
    }


def get_auth_error_responses() -> Dict[int, Dict[str, Any]]:
    """Get authentication and authorization error response schemas."""
    return get_error_responses(401, 403)


def get_crud_error_responses() -> Dict[int, Dict[str, Any]]:
    """Get error response schemas for gated property operations."""
    return get_error_responses(401, 403, 404, 422, 500)
