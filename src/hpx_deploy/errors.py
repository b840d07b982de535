"""
Error taxonomy for hpx-deploy

Every failure is fatal to the run: the CLI reports it, prints usage and exits.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorType(Enum):
    """Error type enumeration"""
    VALIDATION_ERROR = "validation_error"
    EXTERNAL_CALL_ERROR = "external_call_error"
    CONFIGURATION_ERROR = "configuration_error"


class DeployError(Exception):
    """Base exception for hpx-deploy"""

    def __init__(self, message: str, error_type: ErrorType = ErrorType.VALIDATION_ERROR,
                 details: Optional[Dict[str, Any]] = None,
                 original_exception: Optional[Exception] = None):
        """
        Args:
            message: human readable error message
            error_type: error category
            details: extra context for the error
            original_exception: wrapped exception, if any
        """
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}
        self.original_exception = original_exception

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'message': self.message,
            'error_type': self.error_type.value,
            'details': self.details,
            'original_exception': str(self.original_exception) if self.original_exception else None
        }


class ValidationFailure(DeployError):
    """Malformed or missing input field"""

    def __init__(self, message: str, field: Optional[str] = None,
                 value: Optional[str] = None, pattern: Optional[str] = None):
        details = {}
        if field is not None:
            details['field'] = field
            details['value'] = value
        if pattern is not None:
            details['pattern'] = pattern
        super().__init__(message, ErrorType.VALIDATION_ERROR, details=details)
        self.field = field
        self.value = value
        self.pattern = pattern


class ExternalCallFailure(DeployError):
    """AWS API call returned a non-success response"""

    def __init__(self, operation: str, original_exception: Exception):
        super().__init__(
            f"{operation} failed: {original_exception}",
            ErrorType.EXTERNAL_CALL_ERROR,
            details={'operation': operation},
            original_exception=original_exception
        )
        self.operation = operation


class ConfigurationError(DeployError):
    """Local AWS configuration (region, credentials) is missing"""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, ErrorType.CONFIGURATION_ERROR, **kwargs)
