"""
Standard error handling for the duplicate detection tools.

Every tool returns a dictionary. Failures are reported with isError=true and a
numeric code instead of raising, so callers can render per-group outcomes
without aborting the review.
"""

from enum import IntEnum
from typing import Dict, Any, Optional
import logging

from pydantic import ValidationError

from ..exceptions import (
    DedupEngineError, InvalidRecordError, RecordNotFoundError, StoreError,
    AnalysisCancelledError, SessionStateError, InvalidResolutionError, ConfigurationError
)


class DedupErrorCode(IntEnum):
    """Error codes for duplicate detection tool operations."""
    TOOL_EXECUTION_ERROR = -32000
    VALIDATION_ERROR = -32001
    CONFIGURATION_ERROR = -32002
    SESSION_STATE_ERROR = -32003
    ANALYSIS_CANCELLED = -32004
    RESOLUTION_ERROR = -32005
    STORE_ERROR = -32006
    RESOURCE_NOT_FOUND = -32008


_EXCEPTION_CODES = (
    (InvalidRecordError, DedupErrorCode.VALIDATION_ERROR),
    (ValidationError, DedupErrorCode.VALIDATION_ERROR),
    (InvalidResolutionError, DedupErrorCode.RESOLUTION_ERROR),
    (ConfigurationError, DedupErrorCode.CONFIGURATION_ERROR),
    (SessionStateError, DedupErrorCode.SESSION_STATE_ERROR),
    (AnalysisCancelledError, DedupErrorCode.ANALYSIS_CANCELLED),
    (RecordNotFoundError, DedupErrorCode.RESOURCE_NOT_FOUND),
    (StoreError, DedupErrorCode.STORE_ERROR),
)


def error_code_for(error: Exception) -> DedupErrorCode:
    """Map an exception to its tool error code."""
    for exception_type, code in _EXCEPTION_CODES:
        if isinstance(error, exception_type):
            return code
    return DedupErrorCode.TOOL_EXECUTION_ERROR


def create_error_response(
    code: DedupErrorCode,
    message: str,
    data: Optional[Dict[str, Any]] = None,
    log_error: bool = True
) -> Dict[str, Any]:
    """Create a standardized tool error response.

    Args:
        code: Error code from DedupErrorCode
        message: Human-readable error message
        data: Optional additional error data
        log_error: Whether to log the error

    Returns:
        Standardized error response dictionary
    """
    if log_error:
        logging.error(f"Dedup tool error {int(code)}: {message}")
        if data:
            logging.error(f"Error data: {data}")

    error_text = f"Error {int(code)}: {message}"
    if data:
        error_text += f"\n\nDetails: {data}"

    meta = {
        "error_code": int(code),
        "error_message": message
    }
    if data:
        meta["error_data"] = data

    return {
        "success": False,
        "message": message,
        "content": [
            {
                "type": "text",
                "text": error_text
            }
        ],
        "isError": True,
        "_meta": meta
    }


def create_tool_error(message: str, original_error: Exception) -> Dict[str, Any]:
    """Create an error response from an exception raised by the engine.

    Engine errors carry their details through; anything else is reported
    as a tool execution failure.
    """
    data: Dict[str, Any] = {
        "original_error": {
            "type": type(original_error).__name__,
            "message": str(original_error)
        }
    }
    if isinstance(original_error, DedupEngineError) and original_error.details:
        data["details"] = original_error.details

    return create_error_response(
        code=error_code_for(original_error),
        message=f"{message}: {original_error}",
        data=data
    )


def create_success_response(
    message: str,
    data: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Create a standardized tool success response.

    Args:
        message: Human-readable success message
        data: Optional additional result data

    Returns:
        Standardized success response dictionary
    """
    success_response = {
        "success": True,
        "message": message,
        "content": [
            {
                "type": "text",
                "text": message
            }
        ],
        "isError": False
    }

    # Include structured data for programmatic access
    if data:
        success_response.update(data)

    return success_response
