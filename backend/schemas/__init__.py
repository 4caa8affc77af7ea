"""
Pydantic schemas for API request and response validation.

Response models mirror the stored rows; request models only carry the
fields a client may set.
"""
