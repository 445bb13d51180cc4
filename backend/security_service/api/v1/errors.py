"""
Maps service errors onto HTTP responses.
"""

from fastapi import HTTPException

from security_service.services.base import ServiceError


def http_error(e: ServiceError) -> HTTPException:
    """HTTPException carrying the service error's status and message."""
    return HTTPException(
        status_code=e.status_code,
        detail={"message": e.message, "service": e.service_name, **e.details},
    )
