"""
Schemas module - Request/Response schemas for API endpoints.

All request bodies, query strings and route params are validated against
the models in ``hireall.schemas.schemas`` by ``with_api``.
"""
