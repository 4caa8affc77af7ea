"""
HTTP error helpers shared by the routers.

Every error body has the shape {"error": <code>, "details": <message>}.
"""

from fastapi import HTTPException, status
from postgrest.exceptions import APIError


def http_error(status_code: int, error: str, details: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"error": error, "details": details})


def invalid_request(details: str) -> HTTPException:
    return http_error(status.HTTP_400_BAD_REQUEST, "invalid_request", details)


def not_found(details: str) -> HTTPException:
    return http_error(status.HTTP_404_NOT_FOUND, "not_found", details)


def database_error(e: APIError) -> HTTPException:
    return http_error(status.HTTP_400_BAD_REQUEST, "database_error", e.message or str(e))


def internal_error(error: str, details: str) -> HTTPException:
    return http_error(status.HTTP_500_INTERNAL_SERVER_ERROR, error, details)
