"""
Test Suite

This module contains all tests for the Approval Flow backend.

Structure:
    tests/
    ├── __init__.py         # This file
    ├── conftest.py         # Pytest fixtures
    ├── unit/               # Unit tests
    │   ├── __init__.py
    │   ├── test_domain/    # Model and error tests
    │   ├── test_repositories/  # In-memory store tests
    │   ├── test_services/  # Service layer tests
    │   ├── test_engine/    # Engine tests
    │   └── test_utils/     # Utility tests
    └── integration/        # Integration tests
        ├── __init__.py
        └── test_api/       # API endpoint tests

To run tests:
    pytest tests/
    pytest tests/unit/
    pytest tests/integration/
"""

