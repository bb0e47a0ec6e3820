"""
Commerce Admin Service Module.

This package contains the admin API for a commerce backend, following the
three-layer architecture pattern:

- handlers: API Gateway entry point, routing and request validation
- logic: Business logic and domain operations
- dal: Data access layer for DynamoDB persistence
- models: Pydantic domain, input and output models
"""

__version__ = "1.0.0"
