"""
API Middleware Module

This module contains middleware for request/response processing and error handling.

Modules:
    - correlation: Request correlation ID middleware
    - error_handlers: Exception handlers for domain and validation errors
"""

from .correlation import CorrelationIdMiddleware, CORRELATION_HEADER
from .error_handlers import register_error_handlers

__all__ = ["CorrelationIdMiddleware", "CORRELATION_HEADER", "register_error_handlers"]

