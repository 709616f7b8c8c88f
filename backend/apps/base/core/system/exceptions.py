"""
Custom Exception Handlers for Papelería Santiago
================================================
Provides consistent error responses across all API endpoints.
"""

from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from django.db import IntegrityError
import logging

logger = logging.getLogger(__name__)


class PapeleriaBaseException(Exception):
    """Base exception for all Papelería custom exceptions."""
    default_message = "An error occurred"
    default_code = "error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message=None, code=None, extra_data=None):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.extra_data = extra_data or {}
        super().__init__(self.message)


# Shipping Specific Exceptions
class ShippingImportError(PapeleriaBaseException):
    """Raised when a shipping rates workbook cannot be imported."""
    default_message = "Shipping rates import failed"
    default_code = "shipping_import_failed"
    status_code = status.HTTP_400_BAD_REQUEST


def custom_exception_handler(exc, context):
    """
    Custom exception handler for Django REST Framework.
    Provides consistent error response format.
    """
    # Get the standard error response first
    response = exception_handler(exc, context)

    error_data = {
        'success': False,
        'error': {
            'code': 'unknown_error',
            'message': 'An unexpected error occurred',
            'details': None
        }
    }

    if isinstance(exc, PapeleriaBaseException):
        error_data['error'] = {
            'code': exc.code,
            'message': exc.message,
            'details': exc.extra_data or None
        }
        return Response(error_data, status=exc.status_code)

    # Handle DRF exceptions
    if response is not None:
        error_data['error'] = {
            'code': getattr(exc, 'default_code', 'api_error'),
            'message': str(exc.detail) if hasattr(exc, 'detail') else str(exc),
            'details': response.data if isinstance(response.data, dict) else {'errors': response.data}
        }
        return Response(error_data, status=response.status_code)

    if isinstance(exc, DjangoValidationError):
        error_data['error'] = {
            'code': 'validation_error',
            'message': 'Validation failed',
            'details': exc.message_dict if hasattr(exc, 'message_dict') else {'errors': exc.messages}
        }
        return Response(error_data, status=status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, Http404):
        error_data['error'] = {
            'code': 'not_found',
            'message': str(exc) or 'Resource not found',
            'details': None
        }
        return Response(error_data, status=status.HTTP_404_NOT_FOUND)

    # Handle IntegrityError (duplicate zone/city names, etc.)
    if isinstance(exc, IntegrityError):
        logger.error(f"Database integrity error: {exc}")
        error_data['error'] = {
            'code': 'integrity_error',
            'message': 'Database constraint violated',
            'details': None
        }
        return Response(error_data, status=status.HTTP_409_CONFLICT)

    logger.exception(f"Unhandled exception: {exc}")

    # Return generic error for unhandled exceptions (don't expose details)
    return Response(error_data, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class ErrorMessages:
    """Centralized error messages for consistency."""

    # Shipping
    INVALID_WEIGHT_RANGE = "Minimum weight cannot be greater than maximum weight"
    INVALID_WORKBOOK = "The uploaded file is not a readable Excel workbook"
    INVALID_WORKBOOK_VALUE = "Row {row}: '{column}' must be a non-negative number"
    INVALID_WORKBOOK_RANGE = "Row {row}: 'MinWeight' cannot be greater than 'MaxWeight'"
