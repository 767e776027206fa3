"""
Standardized response utilities
"""

import logging
from typing import Any, Optional
from fastapi import HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.schemas.common import StandardResponse, ErrorResponse
from app.services.errors import WorkflowError

logger = logging.getLogger(__name__)

def success_response(
    message: str,
    data: Any = None,
    status_code: int = 200
) -> JSONResponse:
    """Create standardized success response"""
    response = StandardResponse(
        success=True,
        message=message,
        data=jsonable_encoder(data)
    )
    return JSONResponse(
        content=jsonable_encoder(response),
        status_code=status_code
    )

def error_response(
    message: str,
    error_code: Optional[str] = None,
    details: Any = None,
    status_code: int = 400
) -> JSONResponse:
    """Create standardized error response"""
    response = ErrorResponse(
        message=message,
        error_code=error_code,
        details=details
    )
    return JSONResponse(
        content=jsonable_encoder(response),
        status_code=status_code
    )

def workflow_error_response(error: WorkflowError) -> JSONResponse:
    """Translate a service-layer workflow error"""
    return error_response(
        message=error.message,
        error_code=error.error_code,
        details=error.details or None,
        status_code=error.status_code
    )

def backend_error_response(db: Session, action: str, error: Exception) -> JSONResponse:
    """Generic failure of a read/write against the store; the user may retry manually"""
    db.rollback()
    logger.error(f"Error while trying to {action}: {error}")
    return error_response(
        message=f"Could not {action}. Please try again.",
        error_code="backend_error",
        status_code=500
    )

def unauthorized_error(message: str = "Unauthorized"):
    """Create unauthorized error"""
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message
    )

def forbidden_error(message: str = "Forbidden"):
    """Create forbidden error"""
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=message
    )
