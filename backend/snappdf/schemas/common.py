"""
SnapPDF Backend - Shared Response Schemas
===========================================

What:  Error envelope used by every global exception handler, and the
       health check response.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "success": false,
            "error": "INVALID_TOKEN",
            "message": "Unauthorized: Token is invalid or expired",
            "request_id": "a1b2c3d4"
        }

    `stack` is present only outside production.
    """

    success: bool = Field(default=False)
    error: str = Field(description="Stable machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")
    stack: Optional[List[str]] = Field(default=None, description="Traceback (non-production only)")


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    redis: str = Field(description="connected or disconnected")
    uptime_seconds: float
