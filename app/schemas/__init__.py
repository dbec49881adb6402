"""
Schemas module - Request/Response schemas for API endpoints.

Everything lives in app.schemas.schemas; timestamps are the ISO-8601 strings
stored in the database.
"""
